import io
import json
import logging

import structlog

from benchmate.config import Config, LoggingConfig
from benchmate.logging import configure_logging, get_logger


def test_json_logging_filters_by_level():
    stream = io.StringIO()
    cfg = Config(logging=LoggingConfig(level="WARNING", format="json"))
    try:
        configure_logging(cfg, stream=stream)
        logger = get_logger("benchmate.test")
        logger.info("Hidden event")
        logger.warning("Blocked unsafe command", command="sudo ls")
    finally:
        structlog.reset_defaults()

    lines = [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]
    assert len(lines) == 1
    assert lines[0]["event"] == "Blocked unsafe command"
    assert lines[0]["level"] == "warning"
    assert lines[0]["command"] == "sudo ls"
    assert "timestamp" in lines[0]


def test_debug_level_unmutes_http_libraries():
    stream = io.StringIO()
    try:
        configure_logging(Config(logging=LoggingConfig(level="DEBUG")), stream=stream)
        assert logging.getLogger("httpx").level == logging.DEBUG
        configure_logging(Config(logging=LoggingConfig(level="INFO")), stream=stream)
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        structlog.reset_defaults()
