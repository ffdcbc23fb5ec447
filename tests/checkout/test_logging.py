"""Tests for the logging setup shared by app.py and server.py."""

import logging
import logging.handlers

import pytest

from checkout.utils.logging import get_log_level, setup_stdlib_logging


@pytest.fixture()
def root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


class TestLogLevel:
    @pytest.mark.parametrize(
        "env, expected",
        [("production", "INFO"), ("development", "DEBUG"), ("test", "WARNING"), ("unknown", "INFO")],
    )
    def test_level_follows_environment(self, monkeypatch, env, expected):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        monkeypatch.setenv("PROTEAN_ENV", env)
        assert get_log_level() == expected

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert get_log_level() == "ERROR"


class TestHandlers:
    def test_console_only_by_default(self, root_logger):
        setup_stdlib_logging()
        assert [type(h) for h in root_logger.handlers] == [logging.StreamHandler]

    def test_log_dir_adds_rotating_file(self, root_logger, tmp_path):
        setup_stdlib_logging(log_dir=str(tmp_path))

        files = [h for h in root_logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
        assert len(files) == 1
        assert files[0].baseFilename == str(tmp_path / "checkout.log")
        files[0].close()

    def test_library_loggers_are_quieted(self, root_logger):
        setup_stdlib_logging()
        assert logging.getLogger("stripe").level == logging.WARNING
