"""Logging configuration for vardeps."""

import logging
import sys
from pathlib import Path

_ROOT_LOGGER = "vardeps"


def setup_logger(
    name: str = _ROOT_LOGGER,
    level: str | None = None,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return a logger instance.

    Module loggers (``vardeps.remover.archive`` etc.) are left handler-less and
    propagate to the package logger, which owns the console/file handlers.

    Args:
        name: Logger name.
        level: Log level string (DEBUG, INFO, WARNING, ERROR). Applied to the
            package logger even if it was configured earlier.
        log_file: Optional file path for log output.

    Returns:
        Configured logger.
    """
    root_name = name.split(".", 1)[0]
    if root_name != name:
        setup_logger(root_name)
        return logging.getLogger(name)

    logger = logging.getLogger(name)
    if logger.handlers:
        if level is not None:
            logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        if log_file is not None:
            _add_file_handler(logger, Path(log_file))
        return logger

    logger.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))
    logger.propagate = False

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_formatter())
    console.encoding = "utf-8"
    logger.addHandler(console)

    if log_file is not None:
        _add_file_handler(logger, Path(log_file))

    return logger


def _formatter() -> logging.Formatter:
    return logging.Formatter(
        "[%(asctime)s] %(levelname)-8s %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _add_file_handler(logger: logging.Logger, log_file: Path) -> None:
    target = str(log_file.resolve())
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return
    log_file.parent.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_file, encoding="utf-8")
    fh.setFormatter(_formatter())
    logger.addHandler(fh)
