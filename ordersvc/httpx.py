"""HTTP helpers: pagination parameters, request-id and request-logging WSGI middleware."""

from __future__ import annotations

import re
import time
import uuid
from typing import Any, Mapping, Optional, Tuple

from ordersvc import ctxmeta

CONTEXT_KEY = "ordersvc.context"
ROUTE_KEY = "ordersvc.route"

_INT_RE = re.compile(r"[+-]?[0-9]+")


def clamp_int(v: int, lo: int, hi: int) -> int:
    """Limit v to the range [lo, hi]."""
    return max(lo, min(v, hi))


def _atoi(text: str) -> Optional[int]:
    return int(text) if _INT_RE.fullmatch(text) else None


def parse_limit_offset(query: Mapping[str, str], default_limit: int, max_limit: int) -> Tuple[int, int]:
    """Read limit/offset from query parameters with defaults and bounds."""
    limit = default_limit
    parsed = _atoi(query.get("limit", str(default_limit)))
    if parsed is not None:
        limit = clamp_int(parsed, 1, max_limit)
    parsed = _atoi(query.get("offset", "0"))
    offset = parsed if parsed is not None and parsed >= 0 else 0
    return limit, offset


def context_from_environ(environ: Mapping[str, Any]) -> ctxmeta.Context:
    """Return the request context stored in the WSGI environ, or the background context."""
    ctx = environ.get(CONTEXT_KEY)
    return ctx if isinstance(ctx, ctxmeta.Context) else ctxmeta.background()


def request_id_middleware(app):
    """Use the client's X-Request-ID or a new UUID; store it in the context and echo it back."""

    def middleware(environ, start_response):
        request_id = environ.get("HTTP_X_REQUEST_ID") or str(uuid.uuid4())
        environ[CONTEXT_KEY] = ctxmeta.with_request_id(context_from_environ(environ), request_id)

        def start(status, headers, exc_info=None):
            headers = [(k, v) for k, v in headers if k.lower() != "x-request-id"]
            return start_response(status, headers + [("X-Request-ID", request_id)], exc_info)

        return app(environ, start)

    return middleware


def request_logger(app, log):
    """Log one line per request; requests routed to /metrics or /ping are not logged."""

    def middleware(environ, start_response):
        started = time.perf_counter()
        status = [200]

        def start(status_line, headers, exc_info=None):
            status[0] = int(str(status_line).split(" ", 1)[0])
            return start_response(status_line, headers, exc_info)

        result = app(environ, start)
        try:
            body = list(result)
        finally:
            if hasattr(result, "close"):
                result.close()

        route = environ.get(ROUTE_KEY, "")
        if route in ("/metrics", "/ping"):
            return body
        ctx = context_from_environ(environ)
        log.info(
            ctx,
            "request id=%s trace=%s span=%s method=%s path=%s status=%d ip=%s duration=%s size=%d",
            ctxmeta.request_id_from_context(ctx) or "",
            ctxmeta.trace_id_from_context(ctx) or "",
            ctxmeta.span_id_from_context(ctx) or "",
            environ.get("REQUEST_METHOD", ""),
            route or environ.get("PATH_INFO") or "/",
            status[0],
            environ.get("REMOTE_ADDR", ""),
            f"{(time.perf_counter() - started) * 1e3:.3f}ms",
            sum(len(chunk) for chunk in body),
        )
        return body

    return middleware