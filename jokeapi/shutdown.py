"""Soft exit: the single graceful-shutdown path.

Every signal and every explicit request ends up in
:meth:`ShutdownCoordinator.soft_exit`, which closes external connections on a
best-effort basis and then terminates the process.
"""

import asyncio
import logging
import signal
import sys
from typing import Any, Awaitable, Callable, Iterable, Optional

logger = logging.getLogger(__name__)

Cleanup = Callable[[], Awaitable[Any]]


def normalize_exit_code(code: Any = None) -> int:
    """Non-integer or negative exit codes become 0."""
    if isinstance(code, bool) or not isinstance(code, int) or code < 0:
        return 0
    return code


class ShutdownCoordinator:
    """Owns the cleanup callbacks and the process exit."""

    def __init__(
        self,
        cleanups: Optional[Iterable[Cleanup]] = None,
        timeout: float = 5.0,
        exit_func: Callable[[int], Any] = sys.exit,
    ) -> None:
        """Initialise the coordinator.

        Args:
            cleanups: Async callables closing external connections
            timeout: Seconds each cleanup may take before it is abandoned
            exit_func: Terminates the process with the given code
        """
        self._cleanups: list[Cleanup] = list(cleanups or [])
        self.timeout = timeout
        self._exit_func = exit_func
        self._exiting: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: set[asyncio.Task] = set()

    def add_cleanup(self, cleanup: Cleanup) -> None:
        self._cleanups.append(cleanup)

    async def _run_cleanups(self) -> None:
        for cleanup in self._cleanups:
            name = getattr(cleanup, "__qualname__", repr(cleanup))
            try:
                await asyncio.wait_for(cleanup(), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Cleanup {name} timed out after {self.timeout}s")
            except Exception as e:
                logger.warning(f"Cleanup {name} failed: {e}")

    async def soft_exit(self, code: Any = None) -> None:
        """Close external connections, then exit with the normalized code.

        Cleanup errors never change the exit code.
        """
        exit_code = normalize_exit_code(code)
        logger.info(f"Shutting down (exit code {exit_code})")

        try:
            if self._exiting is None:
                self._exiting = asyncio.ensure_future(self._run_cleanups())
            await asyncio.shield(self._exiting)
        except Exception as e:
            logger.warning(f"Error while closing connections: {e}")
        finally:
            self._exit_func(exit_code)

    def request_exit(self, code: Any = 0) -> asyncio.Task:
        """Schedule a soft exit on the event loop. Safe to call from signal handlers."""
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self.soft_exit(code), name="soft_exit")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def register_signals(
        self, names: Iterable[str], loop: Optional[asyncio.AbstractEventLoop] = None
    ) -> list[signal.Signals]:
        """Route each named signal to ``soft_exit(0)``.

        Returns:
            The signals that were registered
        """
        self._loop = loop or asyncio.get_running_loop()
        registered = []

        for name in names:
            sig = signal.Signals[name]
            try:
                self._loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError):
                # Event loops without signal support (e.g. on Windows)
                signal.signal(sig, self._handle_signal)
            registered.append(sig)

        logger.debug(f"Exit signal handlers registered: {[s.name for s in registered]}")
        return registered

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info(f"{sig.name} received - initiating soft exit")
        self.request_exit(0)

    def _handle_signal(self, signum, frame) -> None:
        self._loop.call_soon_threadsafe(self._on_signal, signal.Signals(signum))
