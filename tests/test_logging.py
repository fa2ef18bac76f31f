"""Tests for queue-based logging setup."""

import inspect
import logging
import logging.handlers

import pytest

from metadata_engine import config
from metadata_engine.utils import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_logs_to_file_through_queue(tmp_path, restore_root_logger):
    log_file = tmp_path / "engine.log"
    listener = setup_logging("DEBUG", str(log_file))

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert [type(h) for h in root.handlers] == [logging.handlers.QueueHandler]

    logging.getLogger("metadata_engine.test").info("extracted exif")
    listener.stop()

    assert "INFO metadata_engine.test: extracted exif" in log_file.read_text()


def test_without_file_logs_to_stderr(restore_root_logger):
    listener = setup_logging("warning", None)
    try:
        assert logging.getLogger().level == logging.WARNING
        assert any(isinstance(h, logging.StreamHandler) for h in listener.handlers)
    finally:
        listener.stop()


def test_default_log_file_comes_from_config():
    default = inspect.signature(setup_logging).parameters["log_file"].default
    assert default == config.DEFAULT_LOG_FILE == config.Settings().log_file
