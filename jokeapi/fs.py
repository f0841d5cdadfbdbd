"""Filesystem helpers used during startup."""

import asyncio
import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


def _ensure_dirs_sync(paths: list[Path]) -> list[Path]:
    created = []
    for path in paths:
        if not path.is_dir():
            created.append(path)
        # exist_ok keeps this idempotent; a regular file at the path still raises
        path.mkdir(parents=True, exist_ok=True)
    return created


async def ensure_dirs(paths: Iterable[str | Path]) -> list[Path]:
    """Create every directory in ``paths`` that does not exist yet.

    Runs off the event loop. Already-existing directories are not an error.

    Returns:
        The directories that had to be created
    """
    dirs = [Path(p) for p in paths]
    created = await asyncio.to_thread(_ensure_dirs_sync, dirs)
    for path in created:
        logger.debug(f"Created directory {path}")
    return created
