"""
Service logging: one ``lms`` logger writing to a rotating file, plus stdout
when ``LOG_TO_CONSOLE`` is set. Every record carries the id of the request
that produced it.
"""

from __future__ import annotations

import logging
import sys
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterator, Optional

LOGGER_NAME = "lms"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s request_id=%(request_id)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_request_id: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.request_id = _request_id.get()
        return True


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    handler.addFilter(RequestIdFilter())
    return handler


def configure_logging(
    *,
    log_dir: str | Path | None = None,
    log_file: str = "lms.log",
    level: str | None = None,
    console: bool | None = None,
) -> logging.Logger:
    """Attach handlers to the ``lms`` logger once; later calls return it unchanged.

    Arguments left as None fall back to ``LOG_DIR``, ``LOG_LEVEL`` and
    ``LOG_TO_CONSOLE`` from the settings.
    """
    from lms.config import settings

    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    numeric_level = logging.getLevelNamesMapping().get((level or settings.log_level).upper(), logging.INFO)
    directory = Path(log_dir or settings.log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    logger.setLevel(numeric_level)
    logger.propagate = False
    logger.addHandler(
        _handler(
            RotatingFileHandler(directory / log_file, maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8"),
            numeric_level,
        )
    )
    if settings.log_to_console if console is None else console:
        logger.addHandler(_handler(logging.StreamHandler(sys.stdout), numeric_level))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the ``lms`` logger, e.g. ``get_logger(__name__)``."""
    return logging.getLogger(name if name.startswith(LOGGER_NAME) else f"{LOGGER_NAME}.{name}")


def set_request_id(request_id: Optional[str] = None) -> str:
    rid = request_id or uuid.uuid4().hex
    _request_id.set(rid)
    return rid


def clear_request_id() -> None:
    _request_id.set("-")


@contextmanager
def timed(logger: logging.Logger, operation: str) -> Iterator[None]:
    """Log how long ``operation`` took, and whether it raised."""
    started = time.perf_counter()
    try:
        yield
    except Exception as e:
        logger.warning("%s failed after %.1fms: %s", operation, (time.perf_counter() - started) * 1000, e)
        raise
    logger.info("%s done in %.1fms", operation, (time.perf_counter() - started) * 1000)
