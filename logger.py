import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

_FALSE_VALUES = ("", "0", "false", "no", "off")


def env_flag(name: str) -> bool:
    """
    True if the environment variable is set to anything but an empty/false-ish value.
    """
    return os.environ.get(name, "").strip().lower() not in _FALSE_VALUES


def is_debug() -> bool:
    return env_flag("DEBUG") or env_flag("EXTRA_DEBUG")


def is_extra_debug() -> bool:
    """True to echo every line ffmpeg writes to stderr."""
    return env_flag("EXTRA_DEBUG")


def setup_logger(name="mkv_tidy", log_file: Optional[str] = None, level: Optional[int] = None):
    """
    Sets up a logger with a console handler and an optional rotating file handler.
    """
    if level is None:
        level = logging.DEBUG if is_debug() else logging.INFO
    if log_file is None:
        log_file = os.environ.get("MKV_TIDY_LOG_FILE") or None

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent adding handlers multiple times
    if logger.handlers:
        return logger

    # Console Handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
    logger.addHandler(console_handler)

    if log_file:
        add_file_handler(logger, log_file)

    return logger


def add_file_handler(logger: logging.Logger, log_file: str) -> None:
    if any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        return

    log_dir = os.path.dirname(log_file)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    formatter = logging.Formatter(
        '[%(asctime)s] [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_handler = RotatingFileHandler(
        log_file, maxBytes=10*1024*1024, backupCount=5, encoding='utf-8'
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
