"""
logger.py
---------
Logging setup for the schema engine.

Design Decisions:
    * Everything logs under the "schema_engine" logger, configured once at
      import from ``CONFIG.engine`` (LOG_LEVEL, LOG_FILE).
    * Modules use ``get_logger(__name__)``. Work that belongs to one
      translation request uses ``get_request_logger`` so every line carries
      the request id.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, MutableMapping

from config import CONFIG, get_log_level

ENGINE_LOGGER_NAME = "schema_engine"

_CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(module)s:%(lineno)d] %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def _file_handler(path: Path) -> logging.Handler | None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as exc:
        logging.getLogger(ENGINE_LOGGER_NAME).warning(
            "Log file '%s' unavailable, logging to console only: %s", path, exc
        )
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, _DATE_FORMAT))
    return handler


def configure_logging(level: int | None = None, log_file: str | None = None) -> logging.Logger:
    """
    (Re)configure the engine logger tree.

    Handlers installed by a previous call are replaced, so calling this
    again (for example after changing LOG_LEVEL) does not duplicate output.
    """
    engine = logging.getLogger(ENGINE_LOGGER_NAME)
    for handler in list(engine.handlers):
        engine.removeHandler(handler)
        handler.close()

    level = get_log_level() if level is None else level
    engine.setLevel(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT, _DATE_FORMAT))
    engine.addHandler(console)

    log_file = CONFIG.engine.log_file if log_file is None else log_file
    if log_file:
        handler = _file_handler(Path(log_file))
        if handler is not None:
            engine.addHandler(handler)
    return engine


configure_logging()


def get_logger(name: str) -> logging.Logger:
    """Child logger under "schema_engine", e.g. ``get_logger(__name__)``."""
    return logging.getLogger(f"{ENGINE_LOGGER_NAME}.{name}")


class RequestLoggerAdapter(logging.LoggerAdapter):
    """Prefixes each message with ``[request <id>]`` and exposes the id as a record attribute."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        request_id = self.extra["request_id"]
        kwargs.setdefault("extra", {})["request_id"] = request_id
        return f"[request {request_id}] {msg}", kwargs


def get_request_logger(name: str, request_id: str) -> RequestLoggerAdapter:
    return RequestLoggerAdapter(get_logger(name), {"request_id": request_id})
