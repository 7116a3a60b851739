"""Logging configuration for the local cache."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config.config import CacheConfig

PACKAGE_LOGGER = "local_cache"


def setup_logging(config: CacheConfig | None = None, level=None, log_dir=None) -> Path:
    """Attach console and rotating-file handlers to the package logger.

    Only the ``local_cache`` logger is touched, so an application's own root
    logging setup is left alone. Calling this again replaces the handlers
    installed by the previous call.

    Args:
        config (CacheConfig, optional): Source of the defaults for ``level`` and
            ``log_dir``. Defaults to the shared `CacheConfig` instance.
        level (int, optional): Console logging level.
        log_dir (str | Path, optional): Directory to store the log file in.

    Returns:
        Path: The log file path.

    """
    config = config or CacheConfig.get_instance()
    level = config.log_level if level is None else level
    log_dir = Path(config.log_dir if log_dir is None else log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file_path = log_dir / "local_cache.log"

    file_formatter = logging.Formatter(
        "%(asctime)s - %(levelname)-8s - %(name)-25s - %(funcName)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.DEBUG)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(console_formatter)
    stream_handler.setLevel(level)
    package_logger.addHandler(stream_handler)

    file_handler = RotatingFileHandler(log_file_path, maxBytes=1024 * 1024, backupCount=2)
    file_handler.setFormatter(file_formatter)
    file_handler.setLevel(logging.DEBUG)
    package_logger.addHandler(file_handler)

    package_logger.debug(
        "Logging configured. Console level: %s, File level: DEBUG", logging.getLevelName(level)
    )
    return log_file_path
