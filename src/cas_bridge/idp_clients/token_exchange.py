"""
cas_bridge.idp_clients.token_exchange

OAuth2 authorization-code exchange against the IDP token endpoint.

Responsibilities:
- Trade a CAS ticket (the authorization code) for an id token using the
  service's own client credentials.
- Distinguish a refused ticket (client error) from a transport failure (server error).
"""

from __future__ import annotations

import httpx

from cas_bridge.auth.models import ServiceRegistration
from cas_bridge.errors import InvalidTicketError, TicketExchangeError, TokenDecodeError
from cas_bridge.idp_clients.endpoints import IdpEndpoints
from cas_bridge.settings import Settings


class TokenExchangeClient:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._http = http
        self._endpoints = IdpEndpoints(settings.idp_domain)

    async def exchange_ticket(
        self,
        *,
        registration: ServiceRegistration,
        ticket: str,
        callback_url: str,
    ) -> str:
        # redirect_uri must be byte-identical to the one sent to /authorize.
        try:
            r = await self._http.post(
                self._endpoints.token_url,
                json={
                    "code": ticket,
                    "client_id": registration.client_id,
                    "client_secret": registration.client_secret,
                    "grant_type": "authorization_code",
                    "redirect_uri": callback_url,
                },
            )
        except httpx.HTTPError as e:
            raise TicketExchangeError(f"Token endpoint call failed: {e!r}") from e

        if r.status_code != 200:
            # The upstream body is returned to the CAS client as-is.
            raise InvalidTicketError(r.text, status=r.status_code)

        try:
            body = r.json()
        except ValueError as e:
            raise TokenDecodeError("Token endpoint returned a non-JSON body") from e
        id_token = body.get("id_token") if isinstance(body, dict) else None
        if not id_token or not isinstance(id_token, str):
            raise TokenDecodeError("Token endpoint response has no id_token")
        return id_token


# --- Module Notes -----------------------------------------------------------
# Echoing the upstream body in INVALID_TICKET responses can disclose IDP error
# detail to CAS clients; it is kept for compatibility with existing clients.
