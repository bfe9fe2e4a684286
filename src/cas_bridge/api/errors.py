"""
cas_bridge.api.errors

HTTP rendering of the bridge error taxonomy.

Responsibilities:
- Render client errors as plain-text 400 responses.
- Log server errors with a fresh error id and return only that id.
"""

from __future__ import annotations

import uuid

from fastapi import FastAPI, Request
from starlette.responses import PlainTextResponse

from cas_bridge.errors import ClientError, ServerError
from cas_bridge.observability.logging import get_logger

log = get_logger(__name__)


def server_error_id(exc: BaseException) -> str:
    """
    Log `exc` server-side and return the opaque id the caller is allowed to see.
    """

    error_id = str(uuid.uuid4())
    log.error(
        "server_error",
        error_id=error_id,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return error_id


async def _client_error_handler(_: Request, exc: Exception) -> PlainTextResponse:
    return PlainTextResponse(str(exc), status_code=ClientError.status_code)


async def _server_error_handler(_: Request, exc: Exception) -> PlainTextResponse:
    return PlainTextResponse(
        f"Error ID {server_error_id(exc)}", status_code=ServerError.status_code
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClientError, _client_error_handler)
    app.add_exception_handler(ServerError, _server_error_handler)
    # Anything unexpected gets the same opaque treatment as a ServerError.
    app.add_exception_handler(Exception, _server_error_handler)


# --- Module Notes -----------------------------------------------------------
# serviceValidate renders INVALID_TICKET and server errors as CAS envelopes itself;
# these handlers cover everything else (parameter checks, /login, /callback).
# The `Exception` handler runs in Starlette's outermost error middleware, which
# re-raises after responding; its log line carries no request id.
