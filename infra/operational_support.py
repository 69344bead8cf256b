"""Support journal for ledger operations.

Backfill passes, hook failures and start-up write one JSON line each to
``support-events.jsonl``. Every line carries the trace id of the request or
CLI invocation that produced it, so one run can be pulled out of the journal
and out of the log file together. Free text and payloads are redacted first:
tenant data is fine to keep, credentials and e-mail addresses are not.
"""
from __future__ import annotations

import json
import logging
import os
import re
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from threading import Lock
from typing import Any, Iterator, Mapping

from infra.path import user_data_dir
from infra.version import get_app_version

REDACTED = "<redacted>"
REDACTED_EMAIL = "<redacted-email>"
SUPPORT_EVENTS_FILE = "support-events.jsonl"
TRACE_PREFIX = "trc"

_MAX_DEPTH = 8
_trace_id_var: ContextVar[str | None] = ContextVar("cvr_trace_id", default=None)

# Any key containing one of these fragments has its value replaced outright.
_SECRET_KEY_FRAGMENTS = frozenset(
    {"password", "token", "secret", "api_key", "apikey", "authorization", "cookie", "private_key", "dsn"}
)

# Ordered: URL credentials go first so the e-mail rule never sees user:pass@host.
_TEXT_RULES: tuple[tuple[re.Pattern[str], Any], ...] = (
    (
        re.compile(r"(?i)(\b[a-z][a-z0-9+.\-]*://[^:/@\s]+):([^@\s]+)@"),
        lambda m: f"{m.group(1)}:{REDACTED}@",
    ),
    (
        re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
        lambda m: REDACTED_EMAIL,
    ),
    (
        re.compile(r"(?i)\b(password|token|secret|api[_-]?key|authorization)\b\s*[:=]\s*([^\s,;]+)"),
        lambda m: f"{m.group(1)}={REDACTED}",
    ),
)


# ---- trace ids ---------------------------------------------------------

def create_trace_id() -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"{TRACE_PREFIX}-{stamp}-{uuid.uuid4().hex[:8]}"


def current_trace_id() -> str | None:
    return (_trace_id_var.get() or "").strip() or None


@contextmanager
def bind_trace_id(trace_id: str | None) -> Iterator[str]:
    """Make ``trace_id`` (or a fresh one) current for the enclosed block."""
    bound = (trace_id or "").strip() or create_trace_id()
    token = _trace_id_var.set(bound)
    try:
        yield bound
    finally:
        _trace_id_var.reset(token)


class TraceIdLogFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = current_trace_id() or "-"
        return True


# ---- redaction ---------------------------------------------------------

def redact_text(value: str) -> str:
    text = str(value or "")
    for pattern, replacement in _TEXT_RULES:
        text = pattern.sub(replacement, text)
    return text


def _secret_key(key: object) -> bool:
    normalized = str(key or "").strip().lower().replace("-", "_")
    return any(fragment in normalized for fragment in _SECRET_KEY_FRAGMENTS)


def redact_value(value: Any, *, _depth: int = 0) -> Any:
    """JSON-safe, redacted copy of a support payload.

    Money stays exact (``Decimal`` becomes its string form); dates become
    ISO strings; anything unrecognised is stringified and scrubbed.
    """
    if _depth >= _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {
            str(key): REDACTED if _secret_key(key) else redact_value(item, _depth=_depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_value(item, _depth=_depth + 1) for item in value]
    return redact_text(str(value))


# ---- journal -----------------------------------------------------------

@dataclass(frozen=True)
class SupportEvent:
    event_type: str
    level: str
    trace_id: str
    message: str
    timestamp_utc: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    app_version: str = field(default_factory=get_app_version)
    pid: int = field(default_factory=os.getpid)
    data: dict[str, Any] | None = None

    def to_json(self) -> str:
        payload = {key: value for key, value in asdict(self).items() if value is not None}
        return json.dumps(payload, ensure_ascii=True, sort_keys=True)


class OperationalSupport:
    """Append-only JSON-lines journal of support events (backfill runs, failures)."""

    def __init__(self, events_path: str | Path | None = None) -> None:
        self._events_path = Path(events_path or user_data_dir() / "logs" / SUPPORT_EVENTS_FILE)
        self._events_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()

    @property
    def events_path(self) -> Path:
        return self._events_path

    def emit_event(
        self,
        *,
        event_type: str,
        message: str,
        level: str = "INFO",
        trace_id: str | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> str:
        """Journal one event and return the trace id it was filed under."""
        event = SupportEvent(
            event_type=(event_type or "").strip() or "support.event",
            level=(level or "INFO").strip().upper(),
            trace_id=(trace_id or current_trace_id() or create_trace_id()).strip(),
            message=redact_text(message or ""),
            data=redact_value(dict(data)) if data else None,
        )
        with self._lock, self._events_path.open("a", encoding="utf-8") as handle:
            handle.write(event.to_json() + "\n")
        return event.trace_id

    def read_events(self, *, trace_id: str | None = None, event_type: str | None = None) -> list[dict[str, Any]]:
        if not self._events_path.exists():
            return []
        wanted_trace = (trace_id or "").strip()
        wanted_type = (event_type or "").strip()
        events = []
        with self._events_path.open(encoding="utf-8", errors="ignore") as handle:
            for line in handle:
                payload = _parse_line(line)
                if payload is None:
                    continue
                if wanted_trace and str(payload.get("trace_id") or "").strip() != wanted_trace:
                    continue
                if wanted_type and payload.get("event_type") != wanted_type:
                    continue
                events.append(payload)
        return events


def _parse_line(line: str) -> dict[str, Any] | None:
    if not line.strip():
        return None
    try:
        payload = json.loads(line)
    except json.JSONDecodeError:
        # torn write from a process that died mid-line
        return None
    return payload if isinstance(payload, dict) else None


_support_by_path: dict[Path, OperationalSupport] = {}
_default_path: Path | None = None


def get_operational_support(log_dir: Path | None = None) -> OperationalSupport:
    """Shared journal for ``log_dir``; the first directory asked for becomes the default."""
    global _default_path
    if log_dir is None:
        path = _default_path or user_data_dir() / "logs" / SUPPORT_EVENTS_FILE
    else:
        path = Path(log_dir) / SUPPORT_EVENTS_FILE
    if _default_path is None:
        _default_path = path
    support = _support_by_path.get(path)
    if support is None:
        support = _support_by_path[path] = OperationalSupport(path)
    return support


__all__ = [
    "OperationalSupport",
    "REDACTED",
    "REDACTED_EMAIL",
    "SUPPORT_EVENTS_FILE",
    "SupportEvent",
    "TraceIdLogFilter",
    "bind_trace_id",
    "create_trace_id",
    "current_trace_id",
    "get_operational_support",
    "redact_text",
    "redact_value",
]
