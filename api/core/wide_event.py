"""Request-scoped wide event for canonical log lines.

Handlers and services add fields while a request runs; RequestTimingMiddleware
creates the dict at request start and emits it as one log line at the end.

Usage:
    from core.wide_event import set_wide_event_fields

    set_wide_event_fields(checkin_status="checked-in", checkin_streak=3)
"""

from contextvars import ContextVar
from typing import Any

_wide_event: ContextVar[dict[str, Any]] = ContextVar("wide_event")


def init_wide_event() -> dict[str, Any]:
    """Start a fresh wide event for the current async context."""
    event: dict[str, Any] = {}
    _wide_event.set(event)
    return event


def get_wide_event() -> dict[str, Any]:
    """Current wide event, or an empty dict outside a request."""
    try:
        return _wide_event.get()
    except LookupError:
        return {}


def set_wide_event_field(key: str, value: Any) -> None:
    set_wide_event_fields(**{key: value})


def set_wide_event_fields(**kwargs: Any) -> None:
    """Merge fields into the current wide event.

    No-op outside a request context (CLI, tests without middleware).
    """
    try:
        event = _wide_event.get()
    except LookupError:
        return
    event.update(kwargs)


def clear_wide_event() -> None:
    _wide_event.set({})
