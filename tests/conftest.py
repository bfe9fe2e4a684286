"""
tests.conftest

Shared fixtures for the CAS bridge test-suite.

Responsibilities:
- Build a test app wired to the fake IDP tenant.
- Provide an in-process HTTP client (httpx.ASGITransport).
- Intercept outbound IDP calls with respx.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import httpx
import pytest
import pytest_asyncio
import respx

from cas_bridge.api.app import create_app
from cas_bridge.settings import Settings
from tests.idp_fakes import BRIDGE_BASE, IDP_DOMAIN, RsaMaterial, make_rsa_material


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        env="test",
        log_level="WARNING",
        idp_domain=IDP_DOMAIN,
        api_client_id="client_id",
        api_client_secret="client_secret",
        idp_connection="foo_connection",
        idp_scopes="scope1 scope2",
        username_field="email",
        session_secret="test secret",
    )


@pytest.fixture()
def app(settings: Settings):
    return create_app(settings=settings)


@pytest_asyncio.fixture()
async def client(app) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url=BRIDGE_BASE) as c:
        yield c


@pytest.fixture()
def idp() -> Iterator[respx.MockRouter]:
    # Only outbound IDP traffic goes through httpcore; the ASGI test client does not.
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture(scope="session")
def rsa_material() -> RsaMaterial:
    return make_rsa_material()
