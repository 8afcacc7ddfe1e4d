"""Correlation ID propagation for request tracing.

The middleware stores the ID in a ContextVar so log lines emitted anywhere
during the request (including sync handlers run in the thread pool) carry it.
"""

import uuid
from contextvars import ContextVar, Token

from starlette.requests import Request
from starlette.responses import Response

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Inbound IDs longer than this are replaced, not trusted.
_MAX_INBOUND_LENGTH = 128


def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    """Get current correlation ID from context."""
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    """Set correlation ID in context."""
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    """Reset correlation ID to previous value."""
    correlation_id_var.reset(token)


async def correlation_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware: reuse or mint X-Correlation-ID and echo it back."""
    cid = request.headers.get(CORRELATION_ID_HEADER, "")
    if not cid or len(cid) > _MAX_INBOUND_LENGTH:
        cid = generate_correlation_id()
    token = set_correlation_id(cid)
    try:
        response = await call_next(request)
        response.headers[CORRELATION_ID_HEADER] = cid
        return response
    finally:
        reset_correlation_id(token)
