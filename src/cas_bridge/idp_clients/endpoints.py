"""
cas_bridge.idp_clients.endpoints

IDP endpoint layout for an Auth0-style tenant.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class IdpEndpoints:
    domain: str

    @property
    def base_url(self) -> str:
        return f"https://{self.domain}"

    @property
    def issuer(self) -> str:
        # id tokens carry the tenant URL with a trailing slash as `iss`.
        return f"{self.base_url}/"

    @property
    def authorize_url(self) -> str:
        return f"{self.base_url}/authorize"

    @property
    def token_url(self) -> str:
        return f"{self.base_url}/oauth/token"

    @property
    def jwks_url(self) -> str:
        return f"{self.base_url}/.well-known/jwks.json"

    @property
    def logout_url(self) -> str:
        return f"{self.base_url}/v2/logout"

    @property
    def management_audience(self) -> str:
        return f"{self.base_url}/api/v2/"

    @property
    def clients_url(self) -> str:
        return f"{self.base_url}/api/v2/clients"
