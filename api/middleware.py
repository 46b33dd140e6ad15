"""Tenant and request-id middleware using ContextVar.

Extracts the tenant from the `dbId` query parameter and gives every request
a short request id. Both are stored in ContextVars so that log lines from
any downstream code (repositories, exception handlers) can be tagged
without explicit parameter passing. Whether `dbId` is required is decided
per route, not here.
"""

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Context variables — thread/task-safe request state
# ---------------------------------------------------------------------------

_current_tenant: ContextVar[str | None] = ContextVar("current_tenant", default=None)
_request_id: ContextVar[str] = ContextVar("request_id", default="-")


def get_current_tenant() -> str | None:
    """Return the `dbId` of the current request, or None when absent."""
    return _current_tenant.get()


def get_request_id() -> str:
    """Return the short id assigned to the current request."""
    return _request_id.get()


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

class TenantMiddleware(BaseHTTPMiddleware):
    """Tag each request with its tenant and a request id, and log the outcome.

    The request id is echoed back in the X-Request-ID response header.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        tenant_id = request.query_params.get("dbId") or None
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]

        tenant_token = _current_tenant.set(tenant_id)
        request_token = _request_id.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "[%s] %s %s dbId=%s -> %d (%.1fms)",
                request_id, request.method, request.url.path,
                tenant_id, response.status_code, elapsed_ms,
            )
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            _current_tenant.reset(tenant_token)
            _request_id.reset(request_token)
