"""Request metadata carried through a context chain."""

from __future__ import annotations

from typing import Any, Optional


class _CtxKey(str):
    """Key type of this module; a plain string with the same text never matches it."""

    def __eq__(self, other: object) -> bool:
        return type(other) is _CtxKey and str.__eq__(self, other)

    __hash__ = str.__hash__


KEY_REQUEST_ID = _CtxKey("request_id")


class Context:
    """Immutable chain of key/value pairs."""

    def __init__(self, parent: Optional["Context"] = None, key: Any = None, value: Any = None):
        self._parent = parent
        self._key = key
        self._value = value

    def with_value(self, key: Any, value: Any) -> "Context":
        """Return a child context holding key -> value."""
        return Context(self, key, value)

    def value(self, key: Any) -> Any:
        """Look key up through this context and its parents."""
        ctx = self
        while ctx._parent is not None:
            if ctx._key == key:
                return ctx._value
            ctx = ctx._parent
        return None


_BACKGROUND = Context()


def background() -> Context:
    """Return the empty root context."""
    return _BACKGROUND


def with_request_id(ctx: Optional[Context], request_id: str) -> Optional[Context]:
    """Attach a request id; an empty id or missing context is returned unchanged."""
    if ctx is None or not request_id:
        return ctx
    return ctx.with_value(KEY_REQUEST_ID, request_id)


def request_id_from_context(ctx: Optional[Context]) -> Optional[str]:
    """Return the request id, or None if absent or empty."""
    if ctx is None:
        return None
    value = ctx.value(KEY_REQUEST_ID)
    return value if isinstance(value, str) and value else None


def trace_id_from_context(ctx: Optional[Context]) -> Optional[str]:
    """Tracing is not enabled in this build: always None."""
    return None


def span_id_from_context(ctx: Optional[Context]) -> Optional[str]:
    """Tracing is not enabled in this build: always None."""
    return None