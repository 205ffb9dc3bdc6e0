"""
Structured Logging with Trace IDs
=================================

Routing events are emitted as one JSON object per line. Every decision made
inside a ``TraceContext`` carries the same trace_id, so a single chat
request can be followed from classification to credential lookup.

Secrets never reach a handler: values under secret-looking field names are
replaced outright, and anything that looks like a provider key, a Fernet
token or a Bearer header is masked in every string field.
"""

import json
import logging
import re
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

_trace_id_var: ContextVar[str | None] = ContextVar('trace_id', default=None)

_SECRET_PATTERNS = re.compile(
    r"(\bsk-or-[A-Za-z0-9-]+|\bsk-[A-Za-z0-9]+|gAAAAA[A-Za-z0-9_=-]+|"
    r"Bearer\s+[A-Za-z0-9._~+/=-]+)",
    re.IGNORECASE,
)

# Field names whose values are dropped regardless of content
_SECRET_FIELDS = frozenset({'api_key', 'apikey', 'secret', 'encrypted_secret', 'password', 'token'})

REDACTED = "[REDACTED]"


def _redact_secrets(text: str) -> str:
    return _SECRET_PATTERNS.sub(REDACTED, text)


def _scrub(key: str, value: Any) -> Any:
    if key.lower() in _SECRET_FIELDS:
        return REDACTED
    if isinstance(value, str):
        return _redact_secrets(value)
    if isinstance(value, dict):
        return {k: _scrub(str(k), v) for k, v in value.items()}
    return value


class StructuredLogger:
    """
    Emits one JSON line per event through a stdlib logger.

    Example output:
    {
        "timestamp": "2026-03-02T10:30:45.123Z",
        "level": "INFO",
        "component": "CategoryRouter",
        "message": "Routed request",
        "trace_id": "abc12345",
        "category": "debugging",
        "key_type": "debugging_api_key"
    }
    """

    def __init__(
        self,
        component: str,
        logger: logging.Logger | None = None,
        **bound: Any,
    ) -> None:
        self.component = component
        self.logger = logger or logging.getLogger(component)
        self._bound = bound

    def bind(self, **fields: Any) -> "StructuredLogger":
        """Return a logger that adds *fields* to every event."""
        return StructuredLogger(self.component, self.logger, **{**self._bound, **fields})

    def _log(self, level: int, message: str, fields: dict[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return

        entry: dict[str, Any] = {
            'timestamp': datetime.now(tz=UTC).isoformat(),
            'level': logging.getLevelName(level),
            'component': self.component,
            'message': _redact_secrets(message),
        }
        trace_id = _trace_id_var.get()
        if trace_id:
            entry['trace_id'] = trace_id
        for key, value in {**self._bound, **fields}.items():
            entry[key] = _scrub(key, value)

        self.logger.log(level, _redact_secrets(json.dumps(entry, default=str)))

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._log(logging.ERROR, message, fields)


class TraceContext:
    """
    Binds a trace_id to the current context (thread or asyncio task).

    Usage:
        with TraceContext() as trace_id:
            result = await router.route_by_message(text)
    """

    def __init__(self, trace_id: str | None = None) -> None:
        self.trace_id = trace_id or uuid.uuid4().hex[:8]
        self._token = None

    def __enter__(self) -> str:
        self._token = _trace_id_var.set(self.trace_id)
        return self.trace_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _trace_id_var.reset(self._token)


def get_trace_id() -> str | None:
    return _trace_id_var.get()


def get_logger(component: str) -> StructuredLogger:
    """Structured logger for *component* (also the stdlib logger name)."""
    return StructuredLogger(component)


_TEXT_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """
    Configure the root logger for the CLI.

    ``json`` passes structured events through untouched so the output stays
    one JSON object per line; ``text`` prefixes time, level and logger name.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(message)s' if fmt == "json" else _TEXT_FORMAT,
        force=True,
    )
