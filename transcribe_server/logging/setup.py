"""
Root logging for transcribe-server.

Every record gets a ``service`` tag ("api", "store", "provider", ...) taken
from the logger returned by :func:`get_logger`. The log file holds one JSON
object per line; the console gets a plain one-line format.
"""

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FILENAME = "server.log"

CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s [%(service)s] %(name)s: %(message)s"

DEFAULTS: Dict[str, Any] = {
    "level": "INFO",
    "directory": "data/logs",
    "max_size_mb": 10,
    "backup_count": 5,
    "structured": True,
    "console_output": True,
}


class JsonLineFormatter(logging.Formatter):
    """Formats a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        line = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": record.service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


class ServiceTag(logging.Filter):
    """Stamps ``record.service`` unless an earlier filter already did."""

    def __init__(self, service: str):
        super().__init__()
        self.service = service

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "service"):
            record.service = self.service
        return True


_handlers: list[logging.Handler] = []
_loggers: Dict[str, logging.Logger] = {}


def setup_logging(
    config: Optional[Dict[str, Any]] = None,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Install the rotating file handler (and the console handler) on the root logger.

    ``config`` is the ``logging`` section of the server config; empty values
    fall back to ``DEFAULTS``. Calling it again before :func:`reset_logging`
    is a no-op.
    """
    root = logging.getLogger()
    if _handlers:
        return root

    settings = dict(DEFAULTS)
    settings.update({k: v for k, v in (config or {}).items() if v not in (None, "")})

    directory = log_dir or Path(settings["directory"])
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / LOG_FILENAME

    level = str(settings["level"]).upper()
    root.setLevel(getattr(logging, level, logging.INFO))

    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=int(settings["max_size_mb"]) * 1_000_000,
        backupCount=int(settings["backup_count"]),
        encoding="utf-8",
    )
    if settings["structured"]:
        file_handler.setFormatter(JsonLineFormatter())
    else:
        file_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    _handlers.append(file_handler)

    if settings["console_output"]:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        _handlers.append(console_handler)

    for handler in _handlers:
        handler.addFilter(ServiceTag("main"))
        root.addHandler(handler)

    root.info(f"Logging to {log_path} at {level}")
    return root


def reset_logging() -> None:
    """Remove and close the handlers installed by setup_logging."""
    root = logging.getLogger()
    while _handlers:
        handler = _handlers.pop()
        root.removeHandler(handler)
        handler.close()


def get_logger(service_name: str) -> logging.Logger:
    """Return the ``transcribe_server.<service_name>`` logger, tagged with its service."""
    if service_name not in _loggers:
        logger = logging.getLogger(f"transcribe_server.{service_name}")
        logger.addFilter(ServiceTag(service_name))
        _loggers[service_name] = logger
    return _loggers[service_name]
