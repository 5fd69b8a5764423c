"""
Correlation ID middleware.

Each inbound request gets an id (the X-Correlation-ID header when the caller sends a
sane one, otherwise a fresh UUID). It lives in a contextvar so the log filter and the
system event service can pick it up without threading the request through.
"""

import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

HEADER_CORRELATION_ID = "X-Correlation-ID"
MAX_INCOMING_LENGTH = 128

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def _pick_correlation_id(incoming: str | None) -> str:
    if incoming and incoming.strip() and len(incoming) <= MAX_INCOMING_LENGTH:
        return incoming.strip()
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        cid = _pick_correlation_id(request.headers.get(HEADER_CORRELATION_ID))
        token = _correlation_id_var.set(cid)
        try:
            response = await call_next(request)
        finally:
            _correlation_id_var.reset(token)
        response.headers[HEADER_CORRELATION_ID] = cid
        return response
