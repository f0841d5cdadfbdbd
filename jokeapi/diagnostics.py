"""Startup diagnostic record."""

import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from jokeapi.analytics import AnalyticsStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InitRecord:
    """What gets reported once all stages are up.

    ``reserved_a`` and ``reserved_b`` are kept empty for future fields.
    """

    init_timestamp: float
    init_time_deduction: float
    duration_ms: float
    stage_count: int
    splash: Optional[str] = None
    reserved_a: Any = None
    reserved_b: Any = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["started_at"] = datetime.fromtimestamp(self.init_timestamp, timezone.utc).isoformat()
        return data


def build_init_record(
    init_timestamp: float,
    init_time_deduction: float,
    stage_count: int,
    splash: Optional[str] = None,
    now: Optional[float] = None,
) -> InitRecord:
    """Compute the perceived startup time, never below zero."""
    now = time.time() if now is None else now
    elapsed_ms = (now - init_timestamp) * 1000
    return InitRecord(
        init_timestamp=init_timestamp,
        init_time_deduction=init_time_deduction,
        duration_ms=max(0.0, round(elapsed_ms - init_time_deduction, 2)),
        stage_count=stage_count,
        splash=splash,
    )


async def emit_init_message(
    record: InitRecord, analytics: Optional["AnalyticsStore"] = None
) -> None:
    """Log the startup banner and persist the record when analytics is connected."""
    logger.info("=" * 60)
    if record.splash:
        logger.info(f"JokeAPI is ready - {record.splash}")
    else:
        logger.info("JokeAPI is ready")
    logger.info(
        f"Initialized {record.stage_count} modules in {record.duration_ms:.0f}ms",
        extra={"init_record": record.to_dict()},
    )
    if record.init_time_deduction:
        logger.info(f"   ({record.init_time_deduction:.0f}ms deducted for background work)")
    logger.info("=" * 60)

    if analytics is not None:
        try:
            await analytics.record_startup(record.to_dict())
        except Exception as e:
            logger.warning(f"Failed to persist startup record: {e}")
