"""Orchestrator: sequential JokeAPI startup.

Brings up every configured subsystem in order, one at a time, and only
declares the service ready once all of them succeeded:

- Directory structure (idempotent create)
- Splash texts
- Stages, strictly sequential and fail-fast
- Startup diagnostics (timing minus stage deductions)

Any failure during startup terminates the process with exit code 1. The only
graceful path out is :meth:`ShutdownCoordinator.soft_exit`, triggered by the
configured exit signals.
"""

import asyncio
import logging
import sys
import time
from typing import NoReturn, Optional, Sequence, TextIO

from jokeapi.analytics import AnalyticsStore
from jokeapi.config import EnvConfig, Settings, load_env, load_settings
from jokeapi.diagnostics import InitRecord, build_init_record, emit_init_message
from jokeapi.errors import StageError
from jokeapi.fs import ensure_dirs
from jokeapi.logger import ConsoleFormatter, setup_logger
from jokeapi.pipeline import run_sequential
from jokeapi.progress import ProgressReporter, create_progress_reporter, stage_label
from jokeapi.shutdown import ShutdownCoordinator
from jokeapi.splashes import SplashStore
from jokeapi.stages import Stage, build_stage_registry, total_deduction

logger = logging.getLogger("jokeapi")

NO_ERROR_MESSAGE = "(No error message provided)"


def format_init_error(action: str, err: BaseException | str | None) -> str:
    """Build the operator-facing message for a fatal startup error."""
    if isinstance(err, StageError) and err.__cause__ is not None:
        err = err.__cause__
    message = str(err) if err is not None else ""
    return f"JokeAPI encountered an error while {action}:\n{message or NO_ERROR_MESSAGE}"


def init_error(action: str, err: BaseException | str | None) -> NoReturn:
    """Report a fatal startup error and terminate with exit code 1.

    Startup is all-or-nothing: there is no retry and no partial startup.
    """
    message = format_init_error(action, err)
    red = ConsoleFormatter.COLOURS["ERROR"]
    print(f"\n\n{red}{message}{ConsoleFormatter.RESET}\n\n", flush=True)
    logger.critical(message.replace("\n", " "))
    sys.exit(1)


class Orchestrator:
    """Runs the startup sequence for one process."""

    def __init__(
        self,
        settings: Settings,
        splashes: Optional[SplashStore] = None,
        analytics: Optional[AnalyticsStore] = None,
        stages: Optional[Sequence[Stage]] = None,
        shutdown: Optional[ShutdownCoordinator] = None,
        progress_stream: Optional[TextIO] = None,
        debugger_active: Optional[bool] = None,
    ):
        """Initialise the orchestrator.

        Args:
            settings: Loaded settings
            splashes: Splash store to load (a new one by default)
            analytics: Analytics connection (built from settings by default)
            stages: Explicit stage list; when None it is built from settings
            shutdown: Coordinator that receives the analytics cleanup
            progress_stream: Where the progress bar is drawn (stdout by default)
            debugger_active: Override for the debugger check
        """
        self.settings = settings
        self.splashes = splashes or SplashStore()
        self.analytics = analytics or AnalyticsStore(
            settings.analytics.database_path, enabled=settings.analytics.enabled
        )
        self.shutdown = shutdown
        self._stages = list(stages) if stages is not None else None
        self._progress_stream = progress_stream
        self._debugger_active = debugger_active

        self.stages: list[Stage] = []
        self.progress: Optional[ProgressReporter] = None
        self.record: Optional[InitRecord] = None

        if self.shutdown is not None:
            self.shutdown.add_cleanup(self.analytics.end_connection)

    def builtin_stages(self) -> dict:
        """Init entry points owned by this process, keyed by settings entry name."""
        return {"analytics": self.analytics.init}

    def build_stages(self) -> list[Stage]:
        if self._stages is not None:
            return list(self._stages)
        return build_stage_registry(self.settings.stages, self.builtin_stages())

    def _on_stage_settled(self, index: int, stage: Stage) -> None:
        logger.debug(f"{stage.name} initialized")
        if self.progress is None:
            return
        try:
            self.progress.advance(stage_label(self.stages, index))
        except Exception as e:
            logger.debug(f"Progress reporter failed: {e}")

    async def init_all(self) -> InitRecord:
        """Bring up every subsystem in order.

        Returns:
            The startup diagnostic record

        Raises:
            SystemExit: With code 1 on any startup failure
        """
        init_timestamp = time.time()

        try:
            await ensure_dirs(self.settings.init.init_dirs)
        except Exception as e:
            init_error("creating directory structure", e)

        try:
            await self.splashes.load(self.settings.languages.splashes_file_path)
        except Exception as e:
            init_error("loading splash texts", e)

        try:
            self.stages = self.build_stages()
        except Exception as e:
            init_error("building the stage registry", e)

        try:
            self.progress = create_progress_reporter(
                self.stages,
                disabled=self.settings.debug.progress_bar_disabled,
                debugger_active=self._debugger_active,
                stream=self._progress_stream,
            )
        except Exception as e:
            logger.debug(f"Progress reporter unavailable: {e}")
            self.progress = None

        logger.info(f"Sequentially initializing all {len(self.stages)} modules...")

        try:
            results = await run_sequential(self.stages, on_settled=self._on_stage_settled)
        except StageError as e:
            init_error(f"initializing {e.stage_name}", e)

        deduction = total_deduction(results)
        logger.info(f"Successfully initialized all {len(self.stages)} modules")

        self.record = build_init_record(
            init_timestamp,
            deduction,
            stage_count=len(self.stages),
            splash=self.splashes.get(self.splashes.default_lang),
        )
        await emit_init_message(self.record, analytics=self.analytics)
        return self.record


async def main(env: Optional[EnvConfig] = None) -> None:
    """Entry point: start up, then serve until a soft exit ends the process."""
    env = env or load_env()

    # Logging only depends on the environment, so config errors get formatted too
    setup_logger("jokeapi", log_level=env["LOG_LEVEL"], log_dir=env["LOG_DIR"])

    try:
        settings = load_settings(env["SETTINGS_PATH"], env)
    except Exception as e:
        init_error("loading configuration", e)

    shutdown = ShutdownCoordinator(timeout=settings.shutdown.cleanup_timeout_seconds)
    try:
        shutdown.register_signals(settings.init.exit_signals)
    except Exception as e:
        init_error("registering exit signals", e)

    orchestrator = Orchestrator(settings, shutdown=shutdown)
    await orchestrator.init_all()

    # Serve until a soft exit terminates the process
    await asyncio.Event().wait()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
