"""
cas_bridge.services.cas_service

CAS handshake coordinator.

Responsibilities:
- `login`: start the OIDC authorization code flow and remember where to return.
- `callback`: check the anti-forgery state and hand the code back as the CAS ticket.
- `service_validate`: exchange the ticket, verify the id token, build the CAS principal.

Session phases: NEW -> AWAITING_CALLBACK (login) -> TICKET_ISSUED (callback).
Validation is stateless given the ticket; a service may validate the same ticket
again for as long as the IDP accepts the code.
"""

from __future__ import annotations

import secrets
from collections.abc import MutableMapping
from typing import Any
from urllib.parse import urlencode

from cas_bridge.auth.jwt import shape_claims, validate_id_token
from cas_bridge.auth.keys import SigningKeyResolver
from cas_bridge.cas.responses import CasSuccess
from cas_bridge.cas.urls import service_redirect_url
from cas_bridge.errors import StateMismatchError
from cas_bridge.idp_clients.endpoints import IdpEndpoints
from cas_bridge.idp_clients.token_exchange import TokenExchangeClient
from cas_bridge.observability.logging import get_logger
from cas_bridge.services.registry import ServiceRegistry
from cas_bridge.session.state import SessionPhase, session_phase
from cas_bridge.settings import Settings

log = get_logger(__name__)


def new_state_value() -> str:
    return secrets.token_urlsafe(32)


class CasService:
    def __init__(
        self,
        *,
        settings: Settings,
        registry: ServiceRegistry,
        token_exchange: TokenExchangeClient,
        key_resolver: SigningKeyResolver,
    ) -> None:
        self._settings = settings
        self._registry = registry
        self._token_exchange = token_exchange
        self._key_resolver = key_resolver
        self._endpoints = IdpEndpoints(settings.idp_domain)

    async def login(
        self,
        *,
        session: MutableMapping[str, Any],
        service_url: str,
        callback_url: str,
    ) -> str:
        registration = await self._registry.resolve_service(service_url)

        state = new_state_value()
        session["state"] = state
        session["service_url"] = service_url
        session["phase"] = SessionPhase.AWAITING_CALLBACK.value
        # A restarted login invalidates any code from a previous round.
        session.pop("code", None)

        params = {
            "client_id": registration.client_id,
            "response_type": "code",
            "scope": self._settings.idp_scopes,
            "redirect_uri": callback_url,
        }
        if self._settings.idp_connection:
            params["connection"] = self._settings.idp_connection
        params["state"] = state

        log.info("login_started", client_id=registration.client_id)
        return f"{self._endpoints.authorize_url}?{urlencode(params)}"

    def callback(
        self,
        *,
        session: MutableMapping[str, Any],
        code: str,
        state: str,
    ) -> str:
        expected = session.get("state")
        service_url = session.get("service_url")
        if (
            session_phase(session) is SessionPhase.NEW
            or not expected
            or not service_url
            or not secrets.compare_digest(str(expected).encode(), state.encode())
        ):
            log.info("callback_state_mismatch", phase=session_phase(session).value)
            raise StateMismatchError()

        session["code"] = code
        session["phase"] = SessionPhase.TICKET_ISSUED.value
        log.info("callback_accepted")
        return service_redirect_url(str(service_url), code)

    async def service_validate(
        self,
        *,
        service_url: str,
        ticket: str,
        callback_url: str,
    ) -> CasSuccess:
        registration = await self._registry.resolve_service(service_url)
        id_token = await self._token_exchange.exchange_ticket(
            registration=registration,
            ticket=ticket,
            callback_url=callback_url,
        )
        key = await self._key_resolver.resolve_key(registration=registration, token=id_token)
        claims = validate_id_token(
            token=id_token,
            key=key,
            audience=registration.client_id,
            issuer=self._endpoints.issuer,
        )
        principal = shape_claims(claims, username_field=self._settings.username_field)
        log.info("service_validated", client_id=registration.client_id, alg=key.algorithm)
        return principal

    def logout_url(self, *, return_to: str | None = None) -> str:
        if not return_to:
            return self._endpoints.logout_url
        return f"{self._endpoints.logout_url}?{urlencode({'returnTo': return_to})}"


# --- Module Notes -----------------------------------------------------------
# The IDP authorization code doubles as the CAS ticket; no ticket store exists.
