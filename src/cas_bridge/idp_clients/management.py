"""
cas_bridge.idp_clients.management

Client for the IDP management API, used to discover CAS-enabled applications.

Responsibilities:
- Obtain a short-lived management access token (client-credentials grant).
- List the tenant's registered applications.
"""

from __future__ import annotations

from typing import Any

import httpx

from cas_bridge.errors import RegistryFetchError
from cas_bridge.idp_clients.endpoints import IdpEndpoints
from cas_bridge.observability.logging import get_logger
from cas_bridge.settings import Settings

log = get_logger(__name__)


class ManagementApiClient:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http
        self._endpoints = IdpEndpoints(settings.idp_domain)

    async def fetch_access_token(self) -> str:
        try:
            r = await self._http.post(
                self._endpoints.token_url,
                json={
                    "client_id": self._settings.api_client_id,
                    "client_secret": self._settings.api_client_secret,
                    "audience": self._endpoints.management_audience,
                    "grant_type": "client_credentials",
                },
            )
        except httpx.HTTPError as e:
            raise RegistryFetchError(f"Could not obtain management API token: {e!r}") from e

        if not r.is_success:
            raise RegistryFetchError(
                f"Could not obtain management API token. status={r.status_code}, body={r.text}"
            )
        body = _json_or_none(r, dict) or {}
        token = body.get("access_token")
        if not token:
            raise RegistryFetchError("Management API token response has no access_token")

        log.info("management_token_obtained", domain=self._settings.idp_domain)
        return str(token)

    async def list_clients(self, *, access_token: str) -> list[dict[str, Any]]:
        try:
            r = await self._http.get(
                self._endpoints.clients_url,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            raise RegistryFetchError(f"Could not fetch IDP clients: {e!r}") from e

        if not r.is_success:
            raise RegistryFetchError(
                f"Could not fetch IDP clients. status={r.status_code}, body={r.text}"
            )
        clients = _json_or_none(r, list)
        if clients is None:
            raise RegistryFetchError("IDP clients response is not a JSON array")
        return clients


def _json_or_none(r: httpx.Response, expected: type) -> Any | None:
    try:
        body = r.json()
    except ValueError:
        return None
    return body if isinstance(body, expected) else None


# --- Module Notes -----------------------------------------------------------
# Both calls are made per registry refresh; the token is not reused because the
# registry only refreshes on a cold cache.
