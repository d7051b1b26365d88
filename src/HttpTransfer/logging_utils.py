"""Structured logging helpers shared across the HTTP transfer client."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlsplit, urlunsplit

__all__ = [
    "JSONFormatter",
    "setup_logging",
    "mask_sensitive_data",
    "mask_header_line",
    "redact_url",
]

MASK = "***masked***"

_SENSITIVE_KEYS = {"authorization", "proxy-authorization", "cookie", "set-cookie", "password", "token"}

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


def mask_sensitive_data(payload: Dict[str, object]) -> Dict[str, object]:
    """Return a copy of ``payload`` with credential-bearing fields masked."""

    masked: Dict[str, object] = {}
    for key, value in payload.items():
        if key.lower() in _SENSITIVE_KEYS:
            masked[key] = MASK
        elif isinstance(value, str):
            masked[key] = mask_header_line(value)
        else:
            masked[key] = value
    return masked


def mask_header_line(text: str) -> str:
    """Mask the value of ``Authorization``/``Cookie`` style header lines inside ``text``."""

    lines = text.split("\n")
    for index, line in enumerate(lines):
        name, sep, _ = line.partition(":")
        if sep and name.strip().lower() in _SENSITIVE_KEYS:
            ending = "\r" if line.endswith("\r") else ""
            lines[index] = f"{name}: {MASK}{ending}"
    return "\n".join(lines)


def redact_url(url: str) -> str:
    """Strip credentials, query, and fragment from ``url`` for logging."""

    try:
        parts = urlsplit(url)
    except ValueError:
        return "[URL_REDACTION_FAILED]"
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, "", ""))


class JSONFormatter(logging.Formatter):
    """Formatter emitting masked JSON log entries for transfer events."""

    def format(self, record: logging.LogRecord) -> str:
        """Render ``record`` as a JSON string including its ``extra`` fields."""

        now = datetime.now(timezone.utc)
        payload: Dict[str, object] = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(payload), default=str)


def setup_logging(
    *,
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[Path] = None,
    max_log_size_mb: int = 100,
    propagate: bool = False,
) -> logging.Logger:
    """Configure the ``HttpTransfer`` logger with a console handler and optional JSON file."""

    logger = logging.getLogger("HttpTransfer")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_httptransfer_managed", False):
            logger.removeHandler(handler)
            if isinstance(handler, logging.StreamHandler):
                stream = getattr(handler, "stream", None)
                if stream in (sys.stdout, sys.stderr):
                    continue
            handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    if json_output:
        stream_handler.setFormatter(JSONFormatter())
    else:
        stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    stream_handler._httptransfer_managed = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=int(max_log_size_mb * 1024 * 1024),
            backupCount=5,
        )
        file_handler.setFormatter(JSONFormatter())
        file_handler._httptransfer_managed = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    logger.propagate = propagate
    return logger
