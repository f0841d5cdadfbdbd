import asyncio
import json
import logging
from pathlib import Path

import pytest

from jokeapi.diagnostics import build_init_record, emit_init_message
from jokeapi.logger import RUN_ID, setup_logger


@pytest.fixture
def test_logger(tmp_path):
    log_dir = tmp_path / "logs"
    logger = setup_logger("jokeapi_test", log_level="INFO", log_dir=str(log_dir))
    yield logger, log_dir
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _flush(logger):
    for h in logger.handlers:
        h.flush()


def test_logger_redacts_sensitive(test_logger, caplog):
    logger, log_dir = test_logger
    caplog.set_level(logging.INFO)

    logger.info("user=alice secret=abc123 token=tok_987 password=hunter2")

    assert "[REDACTED]" in caplog.text
    assert "abc123" not in caplog.text
    assert "tok_987" not in caplog.text
    assert "user=alice" in caplog.text

    _flush(logger)
    content = (Path(log_dir) / "jokeapi_test.log").read_text()
    assert "[REDACTED]" in content
    assert "hunter2" not in content


def test_child_loggers_are_redacted_in_file(test_logger):
    logger, log_dir = test_logger

    logging.getLogger("jokeapi_test.auth").warning("Authorization: Bearer-abc not accepted")

    _flush(logger)
    content = (Path(log_dir) / "jokeapi_test.log").read_text()
    assert "Bearer-abc" not in content


def test_file_output_is_json_with_run_id(test_logger):
    logger, log_dir = test_logger

    logger.info("Initialized 3 modules", extra={"stage_count": 3})

    _flush(logger)
    line = (Path(log_dir) / "jokeapi_test.log").read_text().strip().splitlines()[-1]
    data = json.loads(line)
    assert data["run_id"] == RUN_ID
    assert data["message"] == "Initialized 3 modules"
    assert data["stage_count"] == 3
    assert data["level"] == "INFO"


def test_plain_messages_pass_through(test_logger, caplog):
    logger, _ = test_logger
    caplog.set_level(logging.INFO)

    logger.info("Initializing Authorization module")

    assert "Initializing Authorization module" in caplog.text


def test_startup_record_is_nested_in_json_output(tmp_path):
    logger = setup_logger("jokeapi", log_level="INFO", log_dir=str(tmp_path))
    try:
        record = build_init_record(100.0, 20.0, stage_count=3, splash="Now with puns", now=100.5)
        asyncio.run(emit_init_message(record))
        _flush(logger)
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    lines = [json.loads(line) for line in (tmp_path / "jokeapi.log").read_text().splitlines()]
    entry = next(d for d in lines if "init_record" in d)
    assert entry["logger"] == "jokeapi.diagnostics"
    assert entry["init_record"]["stage_count"] == 3
    assert entry["init_record"]["duration_ms"] == 480.0
    assert entry["timestamp"].endswith("+00:00")
