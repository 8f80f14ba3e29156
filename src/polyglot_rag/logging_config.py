"""Application logging configuration utilities."""

from __future__ import annotations

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

AUDIT_LOGGER_NAME = "polyglot_rag.audit"


# Attributes every LogRecord carries; anything else was passed through ``extra``.
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}


class MinimalJSONFormatter(logging.Formatter):
    """One JSON object per record: timestamp, level, logger and payload.

    Dict messages (telemetry events, audit records) are merged into the
    object; other messages are rendered under ``message``.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
        }
        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            payload["message"] = record.getMessage()

        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        )
        if record.exc_info and "exc" not in payload:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def resolve_log_dir() -> Path:
    return Path(os.getenv("LOG_DIR", "logs"))


# Client libraries log every HTTP request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def configure_logging(level: str | None = None, *, log_dir: Path | None = None) -> Path:
    """Send JSON records to stderr and audit records to ``<log_dir>/audit.log``.

    Returns the path of the audit log.
    """

    directory = log_dir or resolve_log_dir()
    directory.mkdir(parents=True, exist_ok=True)
    audit_path = directory / "audit.log"

    loggers: dict[str, dict[str, Any]] = {
        AUDIT_LOGGER_NAME: {"level": "INFO", "handlers": ["audit"], "propagate": False},
    }
    loggers.update({name: {"level": "WARNING"} for name in _NOISY_LOGGERS})

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"json": {"()": MinimalJSONFormatter}},
            "handlers": {
                "stderr": {"class": "logging.StreamHandler", "formatter": "json"},
                "audit": {
                    "class": "logging.FileHandler",
                    "filename": str(audit_path),
                    "encoding": "utf-8",
                    "formatter": "json",
                },
            },
            "root": {"level": (level or os.getenv("LOG_LEVEL", "INFO")).upper(), "handlers": ["stderr"]},
            "loggers": loggers,
        }
    )
    return audit_path
