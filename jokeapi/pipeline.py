"""Strictly sequential, fail-fast stage execution."""

import inspect
import logging
from typing import Callable, Optional, Sequence

from jokeapi.errors import StageError
from jokeapi.stages import Stage, StageResult

logger = logging.getLogger(__name__)

OnSettled = Callable[[int, Stage], None]


async def run_sequential(
    stages: Sequence[Stage], on_settled: Optional[OnSettled] = None
) -> list[StageResult]:
    """Run each stage's init in order, awaiting it before starting the next.

    Args:
        stages: Stages in execution order
        on_settled: Called with ``(index, stage)`` after each stage succeeds

    Returns:
        One StageResult per stage, in order

    Raises:
        StageError: On the first failing stage; later stages are never invoked
    """
    results: list[StageResult] = []

    for index, stage in enumerate(stages):
        logger.debug(f"Initializing {stage.name} ({index + 1}/{len(stages)})")
        try:
            pending = stage.init()
            if not inspect.isawaitable(pending):
                raise TypeError(
                    f"init returned {type(pending).__name__}, expected an awaitable"
                )
            value = await pending
        except Exception as e:
            logger.error(f"{stage.name} failed: {e}")
            raise StageError(stage.name, str(e)) from e

        results.append(StageResult.coerce(value))

        if on_settled is not None:
            on_settled(index, stage)

    return results
