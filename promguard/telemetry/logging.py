# promguard/telemetry/logging.py
"""
Line-oriented JSON logs for the service and the CLI.

Each line carries ``ts``, ``level``, ``logger``, ``message``, the request id
bound by :mod:`promguard.middleware.request_id` (when serving), and every
``extra`` key passed at the call site or bound with :func:`bind`.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any, Dict, Mapping, MutableMapping, Optional, Tuple

from promguard.middleware.request_id import get_request_id

# Attributes every LogRecord has; anything else on a record came from ``extra``.
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_handler: Optional[logging.Handler] = None


def _utc_iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        # rule and label sets: sorted for stable lines
        return sorted(str(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return str(value)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utc_iso(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        rid = getattr(record, "request_id", None) or get_request_id()
        if rid:
            payload["request_id"] = rid
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_") or key in payload:
                continue
            payload[key] = _jsonable(value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_root_logging(
    level: int | str = "INFO",
    *,
    json_lines: bool = True,
    stream: IO[str] | None = None,
    force: bool = False,
) -> None:
    """
    Install one root handler. Later calls are no-ops unless ``force`` is set;
    the CLI forces so its lines go to stderr even after an app was built.
    """
    global _handler
    if _handler is not None and not force:
        return

    root = logging.getLogger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root.setLevel(level if isinstance(level, int) else logging.INFO)

    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter() if json_lines else logging.Formatter(_PLAIN_FORMAT))
    root.addHandler(handler)
    _handler = handler


class ContextAdapter(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Adds bound context to every record; per-call ``extra`` keys win."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs


def bind(logger: logging.Logger | None = None, **context: Any) -> ContextAdapter:
    """
    Logger with fixed context, e.g. ``bind(log, component="guardrails")``.
    The root logger is used when ``logger`` is None.
    """
    return ContextAdapter(logger or logging.getLogger(), dict(context))
