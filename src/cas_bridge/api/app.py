"""
cas_bridge.api.app

FastAPI app factory for the CAS bridge.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Create the shared infrastructure (HTTP client, caches) and the service graph.
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from cas_bridge import __version__
from cas_bridge.api.errors import register_exception_handlers
from cas_bridge.api.routers.cas import router as cas_router
from cas_bridge.api.routers.health import router as health_router
from cas_bridge.auth.keys import SigningKeyResolver
from cas_bridge.cache import Cache, MemoryCache
from cas_bridge.idp_clients.management import ManagementApiClient
from cas_bridge.idp_clients.token_exchange import TokenExchangeClient
from cas_bridge.observability.logging import configure_logging, get_logger
from cas_bridge.observability.middleware import RequestContextMiddleware
from cas_bridge.services.cas_service import CasService
from cas_bridge.services.registry import ServiceRegistry
from cas_bridge.session.middleware import EncryptedSessionMiddleware
from cas_bridge.settings import Settings

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    http: httpx.AsyncClient | None = None,
    registry_cache: Cache | None = None,
    key_cache: Cache | None = None,
) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    # One client for every outbound IDP call; a timeout counts as a transport failure.
    owns_http = http is None
    http_client = http or httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    registry = ServiceRegistry(
        client=ManagementApiClient(settings=settings, http=http_client),
        cache=registry_cache if registry_cache is not None else MemoryCache(),
        idp_domain=settings.idp_domain,
    )
    cas_service = CasService(
        settings=settings,
        registry=registry,
        token_exchange=TokenExchangeClient(settings=settings, http=http_client),
        key_resolver=SigningKeyResolver(
            settings=settings,
            http=http_client,
            cache=key_cache if key_cache is not None else MemoryCache(),
        ),
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, idp_domain=settings.idp_domain)
        if settings.registry_eager_load:
            await registry.load(require_services=True)
        try:
            yield
        finally:
            if owns_http:
                await http_client.aclose()
            log.info("shutdown")

    app = FastAPI(
        title="CAS Bridge",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.cas_service = cas_service

    # Last added is outermost: request context wraps the session layer.
    app.add_middleware(
        EncryptedSessionMiddleware,
        secret=settings.session_secret,
        cookie_name=settings.session_cookie_name,
        absolute_ttl_seconds=settings.session_absolute_ttl_seconds,
        idle_ttl_seconds=settings.session_idle_ttl_seconds,
        https_only=settings.session_https_only,
    )
    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(cas_router)
    return app


# --- Module Notes -----------------------------------------------------------
# Caches are injectable so a deployment can swap in a shared/evicting store; the
# defaults live for the process lifetime.
