"""Shared test fixtures."""

import asyncio
import json

import pytest

from jokeapi.config import (
    AnalyticsSettings,
    DebugSettings,
    InitSettings,
    LanguageSettings,
    Settings,
    ShutdownSettings,
    StageSpec,
)
from jokeapi.stages import Stage, StageResult


@pytest.fixture
def write_splashes(tmp_path):
    """Write a splashes file and return its path."""

    def _write(document, name="splashes.json"):
        path = tmp_path / name
        if isinstance(document, str):
            path.write_text(document, encoding="utf-8")
        else:
            path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def splashes_document():
    return {
        "defaultLang": "en",
        "splashes": [
            {"en": "first", "de": "erste"},
            {"en": "second"},
            {"en": "third", "de": "dritte"},
        ],
    }


@pytest.fixture
def settings(tmp_path, write_splashes, splashes_document):
    """Settings pointing every path into a temporary directory."""
    splashes_path = write_splashes(splashes_document)
    return Settings(
        init=InitSettings(
            init_dirs=[str(tmp_path / "data"), str(tmp_path / "data" / "logs")],
            exit_signals=["SIGINT", "SIGTERM"],
        ),
        debug=DebugSettings(progress_bar_disabled=True),
        languages=LanguageSettings(splashes_file_path=str(splashes_path)),
        analytics=AnalyticsSettings(
            enabled=True, database_path=str(tmp_path / "data" / "analytics.db")
        ),
        shutdown=ShutdownSettings(cleanup_timeout_seconds=0.5),
        stages=[StageSpec(name="Analytics module", entry="analytics")],
    )


@pytest.fixture
def events():
    """Shared log of stage start/end events."""
    return []


@pytest.fixture
def make_stage(events):
    """Build an instrumented stage that records when it starts and finishes.

    Args (of the returned factory):
        name: Stage name
        delay: Seconds to sleep before settling
        result: Value the stage resolves with
        error: Exception to raise instead of resolving
    """

    def _make(name, delay=0.0, result=None, error=None):
        async def init():
            events.append(("start", name))
            await asyncio.sleep(delay)
            if error is not None:
                events.append(("fail", name))
                raise error
            events.append(("end", name))
            return result

        return Stage(name=name, init=init)

    return _make


@pytest.fixture
def deduction_results():
    """Stage results whose valid deductions add up to 15."""
    return [
        {"initTimeDeduction": 5},
        {},
        {"initTimeDeduction": "x"},
        StageResult(init_time_deduction=10),
    ]
