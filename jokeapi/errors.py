"""Exception types raised during startup and shutdown."""


class JokeAPIError(Exception):
    """Base class for all service errors."""

    pass


class ConfigError(JokeAPIError):
    """Raised when settings or environment are invalid."""

    pass


class SplashLoadError(JokeAPIError):
    """Raised when the splash texts file cannot be loaded."""

    pass


class StageResolutionError(JokeAPIError):
    """Raised when a configured stage entry cannot be resolved to a callable."""

    pass


class StageError(JokeAPIError):
    """Raised when a stage's init fails.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, stage_name: str, message: str = "") -> None:
        self.stage_name = stage_name
        super().__init__(message or f"Stage '{stage_name}' failed")
