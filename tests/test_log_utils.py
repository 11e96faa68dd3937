"""Tests for logger configuration."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from gitembed import log_utils

pytestmark = [pytest.mark.unit]


@pytest.fixture(autouse=True)
def _restore_logger():
    level = log_utils.logger.level
    handlers = list(log_utils.logger.handlers)
    yield
    for handler in log_utils.logger.handlers[:]:
        if handler not in handlers:
            log_utils.logger.removeHandler(handler)
            handler.close()
    log_utils.set_log_level(logging.getLevelName(level))


def test_logger_does_not_propagate():
    assert log_utils.logger.name == "gitembed"
    assert log_utils.logger.propagate is False


def test_set_log_level_updates_handlers():
    log_utils.set_log_level("debug")

    assert log_utils.logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in log_utils.logger.handlers)


def test_invalid_level_is_ignored():
    log_utils.set_log_level("WARNING")

    log_utils.set_log_level("LOUD")

    assert log_utils.logger.level == logging.WARNING


def test_add_file_logging(tmp_path):
    log_utils.add_file_logging(tmp_path / "logs", "DEBUG")

    file_handlers = [
        h for h in log_utils.logger.handlers if isinstance(h, RotatingFileHandler)
    ]
    assert len(file_handlers) == 1
    assert file_handlers[0].level == logging.DEBUG
    assert (tmp_path / "logs" / "gitembed.log").exists()
