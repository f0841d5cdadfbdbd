"""Configuration loading and validation."""

import os
import signal
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, TypedDict

import yaml
from dotenv import load_dotenv

from jokeapi.errors import ConfigError

DEFAULT_EXIT_SIGNALS = ["SIGINT", "SIGTERM"]

# Signals the OS never delivers to a handler
UNCATCHABLE_SIGNALS = {"SIGKILL", "SIGSTOP"}


class EnvConfig(TypedDict, total=False):
    """Environment configuration with type safety."""

    SETTINGS_PATH: str
    LOG_LEVEL: str
    LOG_DIR: str
    PROGRESS_BAR_DISABLED: bool


@dataclass(frozen=True)
class InitSettings:
    """Directories and signals the orchestrator needs before running stages."""

    init_dirs: list[str] = field(default_factory=list)
    exit_signals: list[str] = field(default_factory=lambda: list(DEFAULT_EXIT_SIGNALS))


@dataclass(frozen=True)
class DebugSettings:
    progress_bar_disabled: bool = False


@dataclass(frozen=True)
class LanguageSettings:
    splashes_file_path: str = "data/splashes.json"


@dataclass(frozen=True)
class AnalyticsSettings:
    enabled: bool = True
    database_path: str = "data/analytics/analytics.db"


@dataclass(frozen=True)
class ShutdownSettings:
    cleanup_timeout_seconds: float = 5.0


@dataclass(frozen=True)
class StageSpec:
    """A configured stage: display name plus a builtin key or ``module:callable`` path."""

    name: str
    entry: str


@dataclass(frozen=True)
class Settings:
    """All settings needed to bring the service up."""

    init: InitSettings = field(default_factory=InitSettings)
    debug: DebugSettings = field(default_factory=DebugSettings)
    languages: LanguageSettings = field(default_factory=LanguageSettings)
    analytics: AnalyticsSettings = field(default_factory=AnalyticsSettings)
    shutdown: ShutdownSettings = field(default_factory=ShutdownSettings)
    stages: list[StageSpec] = field(default_factory=list)

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Settings":
        """Create Settings from a parsed settings document."""
        init_cfg = _section(config, "init")
        debug_cfg = _section(config, "debug")
        lang_cfg = _section(config, "languages")
        analytics_cfg = _section(config, "analytics")
        shutdown_cfg = _section(config, "shutdown")

        stages_cfg = config.get("stages") or []
        if not isinstance(stages_cfg, list):
            raise ConfigError(f"stages must be a list, got {type(stages_cfg).__name__}")

        stages = []
        for i, item in enumerate(stages_cfg):
            if not isinstance(item, dict):
                raise ConfigError(f"stages[{i}] must be a mapping, got {type(item).__name__}")
            stages.append(StageSpec(name=str(item.get("name") or ""), entry=str(item.get("entry") or "")))

        try:
            timeout = float(shutdown_cfg.get("cleanup_timeout_seconds", 5.0))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"shutdown.cleanup_timeout_seconds must be a number: {e}") from e

        return cls(
            init=InitSettings(
                init_dirs=[str(d) for d in init_cfg.get("init_dirs") or []],
                exit_signals=[
                    str(s) for s in init_cfg.get("exit_signals", DEFAULT_EXIT_SIGNALS) or []
                ],
            ),
            debug=DebugSettings(
                progress_bar_disabled=bool(debug_cfg.get("progress_bar_disabled", False)),
            ),
            languages=LanguageSettings(
                splashes_file_path=str(
                    lang_cfg.get("splashes_file_path", LanguageSettings.splashes_file_path)
                ),
            ),
            analytics=AnalyticsSettings(
                enabled=bool(analytics_cfg.get("enabled", True)),
                database_path=str(
                    analytics_cfg.get("database_path", AnalyticsSettings.database_path)
                ),
            ),
            shutdown=ShutdownSettings(cleanup_timeout_seconds=timeout),
            stages=stages,
        )


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    value = config.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be a mapping/dict, got {type(value).__name__}")
    return value


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_env() -> EnvConfig:
    """Load environment variables from .env file and environment.

    Returns:
        EnvConfig with all environment settings
    """
    load_dotenv()
    return EnvConfig(
        SETTINGS_PATH=os.getenv("SETTINGS_PATH", "config/settings.yaml"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        LOG_DIR=os.getenv("LOG_DIR", "data/logs"),
        PROGRESS_BAR_DISABLED=_env_flag("PROGRESS_BAR_DISABLED"),
    )


def load_settings(path: str | Path, env: EnvConfig | None = None) -> Settings:
    """Load settings from a YAML file.

    Args:
        path: Path to the settings file
        env: Optional environment config whose overrides are applied on top

    Raises:
        ConfigError: If the file is missing, empty, malformed or invalid
    """
    settings_path = Path(path)

    if not settings_path.exists():
        raise ConfigError(f"Settings file not found: {path}")

    try:
        with open(settings_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Settings file is not valid YAML: {path}: {e}") from e

    if not config:
        raise ConfigError(f"Settings file is empty: {path}")
    if not isinstance(config, dict):
        raise ConfigError(f"Settings file must contain a mapping: {path}")

    settings = Settings.from_dict(config)

    if env and env.get("PROGRESS_BAR_DISABLED"):
        settings = replace(settings, debug=DebugSettings(progress_bar_disabled=True))

    validate_settings(settings)
    return settings


def validate_settings(settings: Settings) -> None:
    """Validate settings for consistency.

    Raises:
        ConfigError: If any setting is invalid
    """
    for name in settings.init.exit_signals:
        if name not in signal.Signals.__members__:
            raise ConfigError(f"Unknown exit signal: {name}")
        if name in UNCATCHABLE_SIGNALS or signal.Signals[name] not in signal.valid_signals():
            raise ConfigError(f"Exit signal {name} cannot be caught")

    if settings.shutdown.cleanup_timeout_seconds <= 0:
        raise ConfigError(
            "shutdown.cleanup_timeout_seconds must be positive, "
            f"got {settings.shutdown.cleanup_timeout_seconds}"
        )

    if not settings.languages.splashes_file_path:
        raise ConfigError("languages.splashes_file_path not set")

    seen = set()
    for i, stage in enumerate(settings.stages):
        if not stage.name:
            raise ConfigError(f"stages[{i}] has no name")
        if not stage.entry:
            raise ConfigError(f"Stage '{stage.name}' has no entry")
        if stage.name in seen:
            raise ConfigError(f"Duplicate stage name: {stage.name}")
        seen.add(stage.name)
