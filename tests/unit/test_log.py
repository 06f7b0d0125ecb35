"""Unit tests for log.py"""

import json
import logging

import structlog

from mdsite.log import configure_logging


def _own_handlers():
    return [h for h in logging.getLogger().handlers if getattr(h, "_mdsite", False)]


def test_configure_logging_json(capsys):
    """JSON format writes one sorted JSON object per event to stderr."""
    configure_logging("INFO", "json")
    structlog.get_logger("mdsite.test").info("built", documents=3)
    line = capsys.readouterr().err.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "built"
    assert event["documents"] == 3
    assert event["level"] == "info"


def test_configure_logging_respects_level(capsys):
    configure_logging("WARNING", "console")
    structlog.get_logger("mdsite.test").info("quiet")
    assert "quiet" not in capsys.readouterr().err


def test_configure_logging_replaces_own_handler():
    """Reconfiguring does not stack handlers."""
    configure_logging()
    configure_logging()
    assert len(_own_handlers()) == 1
