"""
Tests for the logging setup and the color-aware logger wrapper.
"""

import logging

from shared.logging.logging_setup import ColorLogger, CustomFormatter, setup_logging


def _record(msg: str, level: int = logging.INFO, args: tuple = ()) -> logging.LogRecord:
    return logging.LogRecord("search_bridge", level, __file__, 1, msg, args, None)


def test_setup_logging_writes_to_root_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("ROOT_DIR", str(tmp_path))

    logger = setup_logging()
    logger.info("rebuild started")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert isinstance(logger, ColorLogger)
    assert "rebuild started" in (tmp_path / "logs" / "app.log").read_text(encoding="utf-8")


def test_color_is_passed_as_record_attribute(caplog):
    logger = ColorLogger(logging.getLogger("search_bridge.tests.color"))

    with caplog.at_level(logging.INFO, logger="search_bridge.tests.color"):
        logger.info("index cleared", color="green")

    assert caplog.records[0].color == "green"


def test_formatter_prefixes_warnings_and_errors():
    formatter = CustomFormatter("UTC", fmt="%(message)s")

    assert formatter.format(_record("index missing", logging.WARNING)).startswith("⚠️ ")
    assert formatter.format(_record("push failed", logging.ERROR)).startswith("⛔ ")
    assert formatter.format(_record("%d pushed", args=(3,))) == "3 pushed"


def test_formatter_drops_malformed_messages():
    formatter = CustomFormatter("UTC", fmt="%(message)s")

    assert formatter.format(_record("%d pushed", args=("x",))) == ""
