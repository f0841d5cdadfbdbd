"""Tests for sequential, fail-fast stage execution."""

import pytest

from jokeapi.errors import StageError
from jokeapi.pipeline import run_sequential
from jokeapi.stages import Stage, StageResult


@pytest.mark.asyncio
async def test_stages_run_strictly_in_order(make_stage, events):
    # Earlier stages are slower, so any overlap would reorder the events
    stages = [
        make_stage("Languages module", delay=0.03),
        make_stage("Translations module", delay=0.02),
        make_stage("Joke parser module", delay=0.01),
        make_stage("HTTP server module"),
    ]

    results = await run_sequential(stages)

    expected = []
    for stage in stages:
        expected += [("start", stage.name), ("end", stage.name)]
    assert events == expected
    assert results == [StageResult()] * 4


@pytest.mark.asyncio
async def test_failure_stops_remaining_stages(make_stage, events):
    boom = RuntimeError("jokes file is corrupt")
    stages = [
        make_stage("a"),
        make_stage("b", error=boom),
        make_stage("c"),
        make_stage("d"),
    ]

    with pytest.raises(StageError) as exc_info:
        await run_sequential(stages)

    assert exc_info.value.stage_name == "b"
    assert exc_info.value.__cause__ is boom
    assert ("start", "c") not in events
    assert ("start", "d") not in events
    assert events[-1] == ("fail", "b")


@pytest.mark.asyncio
async def test_on_settled_called_after_each_success(make_stage):
    settled = []
    stages = [make_stage("a"), make_stage("b", error=ValueError("nope")), make_stage("c")]

    with pytest.raises(StageError):
        await run_sequential(stages, on_settled=lambda i, s: settled.append((i, s.name)))

    assert settled == [(0, "a")]


@pytest.mark.asyncio
async def test_results_are_coerced(make_stage):
    stages = [
        make_stage("a", result={"initTimeDeduction": 12}),
        make_stage("b", result=StageResult(init_time_deduction=3)),
        make_stage("c", result="not a result"),
    ]

    results = await run_sequential(stages)

    assert [r.init_time_deduction for r in results] == [12.0, 3.0, 0.0]


@pytest.mark.asyncio
async def test_init_returning_non_awaitable_is_a_stage_error():
    stages = [Stage(name="sync", init=lambda: None)]

    with pytest.raises(StageError) as exc_info:
        await run_sequential(stages)

    assert isinstance(exc_info.value.__cause__, TypeError)


@pytest.mark.asyncio
async def test_init_raising_before_awaiting_is_a_stage_error():
    def broken_init():
        raise KeyError("missing")

    with pytest.raises(StageError) as exc_info:
        await run_sequential([Stage(name="broken", init=broken_init)])

    assert exc_info.value.stage_name == "broken"


@pytest.mark.asyncio
async def test_empty_stage_list():
    assert await run_sequential([]) == []
