"""Logging configuration for mediatools."""

import logging
import sys
from logging.handlers import RotatingFileHandler
import os
from typing import Any, Dict, Optional

from .utils import ensure_dir_exists

DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
DEFAULT_LOG_FILE = "mediatools.log"

# Model downloads and image decoding are chatty at INFO
QUIET_LOGGERS = ("transformers", "huggingface_hub", "urllib3", "filelock", "PIL")

def setup_logging(
    log_level: int = logging.INFO,
    log_dir: Optional[str] = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = 10 * 1024 * 1024, # 10 MB
    backup_count: int = 5
) -> None:
    """
    Configures the root logger, replacing any handlers installed before.

    Console output goes to stderr: the CLI prints transcripts and metadata
    JSON on stdout. A rotating log file is added when `log_dir` is set.

    Args:
        log_level: The minimum logging level (e.g., logging.INFO, logging.DEBUG).
        log_dir: The directory to store log files, or None for console only.
        log_file: The name of the log file inside `log_dir`.
        max_bytes: Maximum size of a log file before rotation.
        backup_count: Number of backup log files to keep.
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    root.setLevel(log_level)
    formatter = logging.Formatter(DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir:
        log_path = os.path.join(log_dir, log_file)
        try:
            ensure_dir_exists(log_dir)
            file_handler = RotatingFileHandler(
                log_path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
            )
        except Exception as e:
            root.error(f"Failed to set up file logging at {log_path}: {e}", exc_info=True)
        else:
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
            root.info(f"Logging to {log_path}")

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

def setup_logging_from_config(config: Dict[str, Any], log_level: int) -> None:
    """Applies the `log_dir`/`log_file` keys of a loaded config file."""
    setup_logging(
        log_level=log_level,
        log_dir=config.get('log_dir') or None,
        log_file=config.get('log_file') or DEFAULT_LOG_FILE,
    )
