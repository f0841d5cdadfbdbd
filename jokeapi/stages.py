"""Stage registry: the ordered list of subsystems brought up at startup.

A stage is a named zero-argument callable returning an awaitable. The awaitable
resolves to ``None`` or a :class:`StageResult`; any exception is a fatal
startup error. Order is significant: later stages may rely on the side effects
of earlier ones.
"""

import importlib
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional

from jokeapi.config import StageSpec
from jokeapi.errors import StageResolutionError

logger = logging.getLogger(__name__)

StageInit = Callable[[], Awaitable[Optional["StageResult"]]]


@dataclass(frozen=True)
class StageResult:
    """Accounting hint returned by a stage.

    ``init_time_deduction`` is the number of milliseconds spent on work that
    should not count against the reported startup time.
    """

    init_time_deduction: float = 0.0

    @classmethod
    def coerce(cls, value: Any) -> "StageResult":
        """Normalise whatever a stage resolved with into a StageResult.

        Missing, non-numeric, boolean, NaN and infinite deductions become 0.
        """
        if isinstance(value, StageResult):
            raw = value.init_time_deduction
        elif isinstance(value, Mapping):
            raw = value.get("init_time_deduction", value.get("initTimeDeduction"))
        else:
            raw = None
        return cls(init_time_deduction=_valid_deduction(raw))


def _valid_deduction(raw: Any) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return 0.0
    if math.isnan(raw) or math.isinf(raw):
        return 0.0
    return float(raw)


@dataclass(frozen=True)
class Stage:
    """A named subsystem with one init entry point."""

    name: str
    init: StageInit


def total_deduction(results: Iterable[Any]) -> float:
    """Sum the init time deductions of all stage results."""
    return sum(StageResult.coerce(r).init_time_deduction for r in results)


def resolve_entry(entry: str) -> StageInit:
    """Import a ``package.module:callable`` path."""
    module_name, sep, attr_path = entry.partition(":")
    if not sep or not module_name or not attr_path:
        raise StageResolutionError(
            f"Stage entry '{entry}' must be a builtin name or 'module:callable'"
        )

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise StageResolutionError(f"Cannot import stage module '{module_name}': {e}") from e

    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError as e:
            raise StageResolutionError(f"'{entry}' has no attribute '{attr}'") from e

    if not callable(target):
        raise StageResolutionError(f"Stage entry '{entry}' is not callable")
    return target


def build_stage_registry(
    specs: Iterable[StageSpec], builtins: Optional[Mapping[str, StageInit]] = None
) -> list[Stage]:
    """Turn configured stage specs into the ordered stage list.

    Args:
        specs: Stage specs in execution order
        builtins: Init callables owned by this process, keyed by entry name

    Raises:
        StageResolutionError: If an entry is neither a builtin nor importable
    """
    builtins = builtins or {}
    stages = []
    for spec in specs:
        if spec.entry in builtins:
            init = builtins[spec.entry]
        else:
            init = resolve_entry(spec.entry)
        stages.append(Stage(name=spec.name, init=init))

    logger.debug(f"Stage registry: {[s.name for s in stages]}")
    return stages
