import json
import logging
from pathlib import Path

import pytest
import structlog

from mockserver_launcher.logging_config import (
    get_logger,
    log_level_for,
    mockserver_context,
    set_log_level,
    setup_structured_logging,
)


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def _records(log_file: Path) -> list[dict]:
    return [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]


def test_log_level_follows_mockserver_flags():
    assert log_level_for(verbose=False, trace=False) == "WARNING"
    assert log_level_for(verbose=True, trace=False) == "INFO"
    assert log_level_for(verbose=True, trace=True) == "DEBUG"
    assert log_level_for(verbose=False, trace=True, default="error") == "DEBUG"


def test_verbose_never_raises_level():
    assert log_level_for(verbose=True, trace=False, default="debug") == "DEBUG"
    assert log_level_for(verbose=False, trace=False, default="error") == "ERROR"


def test_mockserver_context_is_scoped():
    with mockserver_context(1080, "3.10.8"):
        assert structlog.contextvars.get_contextvars() == {
            "mockserver_port": 1080,
            "mockserver_version": "3.10.8",
        }

    assert structlog.contextvars.get_contextvars() == {}

    with mockserver_context(1090):
        assert structlog.contextvars.get_contextvars() == {"mockserver_port": 1090}


def test_file_output_is_json_with_server_context(tmp_path: Path):
    """
    Lines logged inside mockserver_context carry the server port and version
    """
    log_file = tmp_path / "logs" / "launcher.log"
    setup_structured_logging(log_file_path=log_file, log_level="INFO", console_output=False)
    log = get_logger("tests.logging.file")

    with mockserver_context(1080, "3.10.8"):
        log.info("MockServer started", pid=4242)
    log.debug("not written")

    records = _records(log_file)
    assert len(records) == 1
    record = records[0]
    assert record["event"] == "MockServer started"
    assert record["level"] == "info"
    assert record["logger"] == "tests.logging.file"
    assert record["mockserver_port"] == 1080
    assert record["mockserver_version"] == "3.10.8"
    assert record["pid"] == 4242
    assert "timestamp" in record


def test_set_log_level_applies_to_existing_loggers(tmp_path: Path):
    log_file = tmp_path / "launcher.log"
    setup_structured_logging(log_file_path=log_file, log_level="WARNING", console_output=False)
    log = get_logger("tests.logging.level")

    log.info("hidden")
    set_log_level("INFO")
    log.info("shown")

    assert [r["event"] for r in _records(log_file)] == ["shown"]
