"""
cas_bridge.services.registry

Service registry: which CAS services exist and which IDP credentials they use.

Responsibilities:
- Discover CAS-enabled applications through the IDP management API.
- Cache the domain -> `ServiceRegistration` mapping for the process lifetime.
- Resolve an incoming `service` URL to its registration.
"""

from __future__ import annotations

from typing import Any

from cas_bridge.auth.models import ServiceRegistration
from cas_bridge.cache import Cache
from cas_bridge.cas.urls import normalize_service_domain
from cas_bridge.errors import RegistryEmptyError, ServiceNotFoundError
from cas_bridge.idp_clients.management import ManagementApiClient
from cas_bridge.observability.logging import get_logger

log = get_logger(__name__)

REGISTRY_CACHE_KEY = "cas_services"


class ServiceRegistry:
    def __init__(self, *, client: ManagementApiClient, cache: Cache, idp_domain: str) -> None:
        self._client = client
        self._cache = cache
        self._idp_domain = idp_domain

    async def resolve_service(self, service_url: str) -> ServiceRegistration:
        services = self._cache.get(REGISTRY_CACHE_KEY)
        if services is None:
            # Cold cache: concurrent callers may each fetch; the result is identical.
            services = await self.load()

        registration = services.get(normalize_service_domain(service_url))
        if registration is None:
            raise ServiceNotFoundError(service_url)
        return registration

    async def load(self, *, require_services: bool = False) -> dict[str, ServiceRegistration]:
        """
        Fetch and cache the registry. With `require_services`, an empty registry is an error.
        """

        access_token = await self._client.fetch_access_token()
        clients = await self._client.list_clients(access_token=access_token)
        services = build_registry(clients)

        if not services and require_services:
            raise RegistryEmptyError(
                f"No clients representing CAS services found in IDP tenant {self._idp_domain}"
            )

        self._cache.set(REGISTRY_CACHE_KEY, services)
        log.info(
            "cas_services_discovered",
            idp_domain=self._idp_domain,
            count=len(services),
            domains=sorted(services),
        )
        return services


def build_registry(clients: list[dict[str, Any]]) -> dict[str, ServiceRegistration]:
    services: dict[str, ServiceRegistration] = {}
    for c in clients:
        if not isinstance(c, dict) or c.get("app_type") != "regular_web":
            continue
        metadata = c.get("client_metadata") or {}
        service_url = metadata.get("cas_service") if isinstance(metadata, dict) else None
        if not service_url:
            continue

        domain = normalize_service_domain(str(service_url))
        if domain in services:
            log.warning(
                "cas_service_domain_collision",
                domain=domain,
                replaced_client_id=services[domain].client_id,
                client_id=c.get("client_id"),
            )
        services[domain] = ServiceRegistration(
            service_domain=domain,
            client_id=str(c.get("client_id", "")),
            client_secret=str(c.get("client_secret", "")),
        )
    return services


# --- Module Notes -----------------------------------------------------------
# Registrations are matched by domain only, so two services on one host share
# a registration (last one listed by the IDP wins).
