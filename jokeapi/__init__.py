"""JokeAPI service core: startup orchestration, shutdown and splash texts."""

__version__ = "2.4.0"
