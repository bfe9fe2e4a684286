"""
cas_bridge.api.routers.cas

CAS protocol endpoints.

Responsibilities:
- `/login`: redirect the browser to the IDP authorize endpoint.
- `/callback`: receive the IDP redirect and return the browser to the service with a ticket.
- `/p3/serviceValidate` (and the CAS 2.0 `/serviceValidate` path): validate a ticket.
- `/logout`: clear the session and hand off to the IDP logout endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from starlette.responses import RedirectResponse, Response
from starlette.status import (
    HTTP_200_OK,
    HTTP_302_FOUND,
    HTTP_400_BAD_REQUEST,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from cas_bridge.api.deps import cas_service_dep, require_params
from cas_bridge.api.errors import server_error_id
from cas_bridge.cas.responses import (
    INVALID_TICKET,
    SERVER_ERROR,
    CasFailure,
    CasResponse,
    ResponseFormat,
    build_response,
    parse_format,
)
from cas_bridge.cas.urls import build_request_url
from cas_bridge.errors import ClientError, InvalidTicketError
from cas_bridge.services.cas_service import CasService

router = APIRouter(tags=["cas"])

CALLBACK_PATH = "/callback"


@router.get("/login", dependencies=[Depends(require_params("service"))])
async def login(
    request: Request,
    service: str = "",
    cas: CasService = Depends(cas_service_dep),
) -> RedirectResponse:
    url = await cas.login(
        session=request.session,
        service_url=service,
        callback_url=build_request_url(request, CALLBACK_PATH),
    )
    return RedirectResponse(url, status_code=HTTP_302_FOUND)


@router.get(CALLBACK_PATH, dependencies=[Depends(require_params("code", "state"))])
async def callback(
    request: Request,
    code: str = "",
    state: str = "",
    cas: CasService = Depends(cas_service_dep),
) -> RedirectResponse:
    # A state mismatch raises StateMismatchError -> plain-text 400, no redirect.
    url = cas.callback(session=request.session, code=code, state=state)
    return RedirectResponse(url, status_code=HTTP_302_FOUND)


@router.get("/p3/serviceValidate", dependencies=[Depends(require_params("service", "ticket"))])
@router.get("/serviceValidate", dependencies=[Depends(require_params("service", "ticket"))])
async def service_validate(
    request: Request,
    service: str = "",
    ticket: str = "",
    response_format: str | None = Query(default=None, alias="format"),
    cas: CasService = Depends(cas_service_dep),
) -> Response:
    fmt = parse_format(response_format)
    try:
        principal = await cas.service_validate(
            service_url=service,
            ticket=ticket,
            callback_url=build_request_url(request, CALLBACK_PATH),
        )
    except InvalidTicketError as e:
        return _cas_response(CasFailure(INVALID_TICKET, e.upstream_body), fmt, HTTP_400_BAD_REQUEST)
    except ClientError:
        raise
    except Exception as e:
        # ServerError and anything unexpected: the caller only sees the error id.
        failure = CasFailure(SERVER_ERROR, f"Error ID {server_error_id(e)}")
        return _cas_response(failure, fmt, HTTP_500_INTERNAL_SERVER_ERROR)
    return _cas_response(principal, fmt, HTTP_200_OK)


@router.get("/logout")
async def logout(
    request: Request,
    service: str | None = None,
    cas: CasService = Depends(cas_service_dep),
) -> RedirectResponse:
    request.session.clear()
    return RedirectResponse(cas.logout_url(return_to=service), status_code=HTTP_302_FOUND)


def _cas_response(response: CasResponse, fmt: ResponseFormat, status_code: int) -> Response:
    body, media_type = build_response(response, fmt)
    return Response(content=body, status_code=status_code, media_type=media_type)


# --- Module Notes -----------------------------------------------------------
# Unrecognized services and missing parameters stay plain text on every endpoint,
# including serviceValidate; only ticket/validation outcomes use the CAS envelope.
