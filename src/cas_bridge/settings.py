"""
cas_bridge.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (management client secret, session secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Env-driven configuration, e.g. `CAS_BRIDGE_IDP_DOMAIN=tenant.auth0.com`.
    """

    model_config = SettingsConfigDict(env_prefix="CAS_BRIDGE_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "cas-bridge"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 3000

    # Upstream IDP
    idp_domain: str = "example.auth0.com"
    idp_connection: str | None = None
    idp_scopes: str = "openid profile"

    # Management API credentials (client-credentials grant, used for service discovery)
    api_client_id: str = ""
    api_client_secret: str = Field(default="", repr=False)

    # Claim rendered as the CAS <cas:user>
    username_field: str = "email"

    # Encrypted browser session
    session_secret: str = Field(default="dev-session-secret-change-me", repr=False)
    session_cookie_name: str = "cas-session"
    session_absolute_ttl_seconds: int = 24 * 60 * 60
    session_idle_ttl_seconds: int = 30 * 60
    session_https_only: bool = True

    # Outbound calls (management API, token endpoint, JWKS)
    http_timeout_seconds: float = 10.0

    # Populate the service registry at startup instead of on first request.
    registry_eager_load: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Every outbound URL is derived from `idp_domain` (see `idp_clients.endpoints`),
# so pointing the bridge at another tenant is a single setting.
