import logging
import sys
from logging.handlers import RotatingFileHandler

import pytest

from mediatools.log_setup import setup_logging, setup_logging_from_config


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_setup_logging_with_file(tmp_path):
    log_dir = tmp_path / "logs"

    setup_logging(log_level=logging.DEBUG, log_dir=str(log_dir), log_file="test.log")
    logging.getLogger("mediatools.test").info("hello log")

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(isinstance(h, RotatingFileHandler) for h in root.handlers)
    for handler in root.handlers:
        handler.flush()
    assert "hello log" in (log_dir / "test.log").read_text(encoding="utf-8")


def test_setup_logging_console_only_replaces_handlers(tmp_path):
    setup_logging(log_dir=str(tmp_path))
    setup_logging(log_dir=None)

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert not isinstance(handlers[0], RotatingFileHandler)


def test_console_logs_go_to_stderr():
    setup_logging(log_level=logging.INFO)

    (handler,) = logging.getLogger().handlers
    assert handler.stream is sys.stderr
    assert logging.getLogger("transformers").level == logging.WARNING


def test_setup_logging_from_config(tmp_path):
    setup_logging_from_config({"log_dir": str(tmp_path / "logs"), "log_file": "cli.log"}, logging.INFO)

    file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].baseFilename == str(tmp_path / "logs" / "cli.log")
