"""Logging for the codedocs service, CLI and background jobs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping, Tuple

_LOGGER_NAME = "codedocs"
_CONSOLE_FORMAT = "[codedocs] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Per-request access logs from the HTTP layers drown out job progress.
_ACCESS_LOGGERS = ("aiohttp.access", "uvicorn.access")


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``codedocs`` hierarchy, e.g. ``codedocs.pipeline``."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME)


class JobLogAdapter(logging.LoggerAdapter):
    """Prefixes every message with ``[job <id>]``."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"[job {self.extra['job_id']}] {msg}", kwargs


def job_logger(name: str, job_id: str) -> JobLogAdapter:
    return JobLogAdapter(get_logger(name), {"job_id": job_id})


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Install the console handler (and optional file sink) on the codedocs logger.

    Safe to call repeatedly: existing handlers are replaced rather than stacked.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    for name in _ACCESS_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if verbose else logging.WARNING)

    return logger


__all__ = ["JobLogAdapter", "configure_logging", "get_logger", "job_logger"]
