"""Leveled logger that enriches records with request metadata from a context."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional

from ordersvc import ctxmeta

_LEVEL_NAMES = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
}


def _level_name(levelno: int) -> str:
    return _LEVEL_NAMES.get(levelno, logging.getLevelName(levelno).lower())


class _JSONFormatter(logging.Formatter):
    """One JSON object per line, suited to log collectors."""

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "level": _level_name(record.levelno),
            "ts": record.created,
            "msg": record.getMessage(),
        }
        data.update(getattr(record, "fields", {}))
        return json.dumps(data, ensure_ascii=False)


class _ConsoleFormatter(logging.Formatter):
    """Human-readable tab-separated lines for development."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, timezone.utc).isoformat(timespec="milliseconds")
        line = f"{ts}\t{_level_name(record.levelno).upper()}\t{record.getMessage()}"
        fields = getattr(record, "fields", None)
        if fields:
            line += "\t" + json.dumps(fields, ensure_ascii=False)
        return line


class ContextLogger:
    """Logger whose methods take a context and add request_id/trace_id/span_id fields."""

    def __init__(self, is_prod: bool = False, stream: Optional[IO[str]] = None):
        self.is_prod = is_prod
        self._handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        self._handler.setFormatter(_JSONFormatter() if is_prod else _ConsoleFormatter())
        self._logger = logging.Logger("ordersvc", logging.INFO if is_prod else logging.DEBUG)
        self._logger.addHandler(self._handler)
        self._logger.propagate = False

    @property
    def base(self) -> logging.Logger:
        """The underlying standard-library logger."""
        return self._logger

    @staticmethod
    def _fields(ctx) -> Dict[str, str]:
        fields: Dict[str, str] = {}
        rid = ctxmeta.request_id_from_context(ctx)
        if rid:
            fields["request_id"] = rid
        tid = ctxmeta.trace_id_from_context(ctx)
        if tid:
            fields["trace_id"] = tid
        sid = ctxmeta.span_id_from_context(ctx)
        if sid:
            fields["span_id"] = sid
        return fields

    def _log(self, level: int, ctx, message: str, args: tuple) -> None:
        self._logger.log(level, message, *args, extra={"fields": self._fields(ctx)})

    def info(self, ctx, message: str, *args: Any) -> None:
        """Log at INFO level; message is %-formatted with args."""
        self._log(logging.INFO, ctx, message, args)

    def warning(self, ctx, message: str, *args: Any) -> None:
        """Log at WARN level."""
        self._log(logging.WARNING, ctx, message, args)

    def error(self, ctx, message: str, *args: Any) -> None:
        """Log at ERROR level."""
        self._log(logging.ERROR, ctx, message, args)

    def sync(self) -> None:
        """Flush buffered output."""
        self._handler.flush()


def new_logger(is_prod: bool) -> ContextLogger:
    """Create a JSON (production) or console (development) logger writing to stderr."""
    return ContextLogger(is_prod)