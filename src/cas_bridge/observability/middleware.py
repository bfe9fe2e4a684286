"""
cas_bridge.observability.middleware

HTTP middleware for request-scoped logging context.

Responsibilities:
- Generate/propagate request IDs.
- Bind request metadata, including the CAS service being served, into structlog contextvars.
"""

from __future__ import annotations

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from cas_bridge.cas.urls import normalize_service_domain


def request_log_context(request: Request, request_id: str) -> dict[str, str]:
    context = {
        "request_id": request_id,
        "path": request.url.path,
        "method": request.method,
    }
    # /login, /serviceValidate and /logout name the CAS service; log its registry
    # key rather than the full URL, which may carry the service's own query data.
    service = request.query_params.get("service")
    if service:
        context["service_domain"] = normalize_service_domain(service)
    return context


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**request_log_context(request, request_id))
        try:
            response: Response = await call_next(request)
        finally:
            # Avoid leaking context across requests under async concurrency.
            structlog.contextvars.clear_contextvars()

        response.headers["x-request-id"] = request_id
        return response


# --- Module Notes -----------------------------------------------------------
# The request id is for log correlation only; CAS error ids are minted separately
# per failure in `api.errors.server_error_id`.
