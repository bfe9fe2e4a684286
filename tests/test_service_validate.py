"""
tests.test_service_validate

End-to-end tests for ticket validation (`/p3/serviceValidate`).

Responsibilities:
- Parameter and service checks (plain-text 400).
- Ticket exchange outcomes (INVALID_TICKET vs opaque SERVER_ERROR).
- HS256 and RS256 id token verification and the CAS success envelope.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET

import httpx
import pytest
import respx

from tests.idp_fakes import (
    APP1_SECRET_BYTES,
    APP1_SERVICE,
    CAS_NS,
    JWKS_URL,
    RS256_KID,
    RsaMaterial,
    create_id_token,
    jwks_with_x5c,
    mock_code_exchange,
    mock_registry,
)

VALIDATE = "/p3/serviceValidate"
APP1_PARAMS = {"service": APP1_SERVICE, "ticket": "foo"}


def assert_cas_server_error(r: httpx.Response) -> None:
    assert r.status_code == 500
    assert r.headers["content-type"].startswith("application/xml")
    root = ET.fromstring(r.text)
    failure = root.find("cas:authenticationFailure", CAS_NS)
    assert failure is not None
    assert failure.get("code") == "SERVER_ERROR"
    assert re.fullmatch(r"Error ID \S+", failure.text or "")


def assert_cas_success(r: httpx.Response) -> None:
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/xml")
    root = ET.fromstring(r.text)
    assert root.tag == "{http://www.yale.edu/tp/cas}serviceResponse"
    success = root.find("cas:authenticationSuccess", CAS_NS)
    assert success is not None
    assert success.findtext("cas:user", namespaces=CAS_NS) == "foo@example.com"
    attributes = success.find("cas:attributes", CAS_NS)
    assert attributes is not None
    assert attributes.findtext("cas:email", namespaces=CAS_NS) == "foo@example.com"
    assert attributes.findtext("cas:authenticationDate", namespaces=CAS_NS)
    for stripped in ("sub", "aud", "iss", "iat", "exp"):
        assert attributes.find(f"cas:{stripped}", CAS_NS) is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("query", "missing"),
    [({"ticket": "foo"}, "service"), ({"service": "bar"}, "ticket")],
)
async def test_requires_params(
    client: httpx.AsyncClient, query: dict[str, str], missing: str
) -> None:
    r = await client.get(VALIDATE, params=query)
    assert r.status_code == 400
    assert r.text == f"Missing required parameter: {missing}"


@pytest.mark.asyncio
async def test_requires_registered_service(
    client: httpx.AsyncClient, idp: respx.MockRouter
) -> None:
    mock_registry(idp)

    r = await client.get(VALIDATE, params={"service": "bar", "ticket": "foo"})
    assert r.status_code == 400
    assert r.headers["content-type"].startswith("text/plain")
    assert r.text == "Unrecognized service: bar"


@pytest.mark.asyncio
async def test_token_endpoint_transport_error_is_server_error(
    client: httpx.AsyncClient, idp: respx.MockRouter
) -> None:
    mock_registry(idp)
    mock_code_exchange(idp).mock(side_effect=httpx.ConnectError("VOIP!"))

    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_server_error(r)
    assert "VOIP" not in r.text


@pytest.mark.asyncio
async def test_token_endpoint_timeout_is_server_error(
    client: httpx.AsyncClient, idp: respx.MockRouter
) -> None:
    mock_registry(idp)
    mock_code_exchange(idp).mock(side_effect=httpx.ReadTimeout("slow IDP"))

    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_server_error(r)


@pytest.mark.asyncio
async def test_refused_ticket_is_invalid_ticket_with_upstream_body(
    client: httpx.AsyncClient, idp: respx.MockRouter
) -> None:
    mock_registry(idp)
    mock_code_exchange(idp).mock(
        return_value=httpx.Response(400, content=b'{"description":"nope!"}')
    )

    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert r.status_code == 400
    assert r.headers["content-type"].startswith("application/xml")
    failure = ET.fromstring(r.text).find("cas:authenticationFailure", CAS_NS)
    assert failure is not None
    assert failure.get("code") == "INVALID_TICKET"
    assert failure.text == '{"description":"nope!"}'


@pytest.mark.asyncio
async def test_undecodable_id_token_is_server_error(
    client: httpx.AsyncClient, idp: respx.MockRouter
) -> None:
    mock_registry(idp)
    mock_code_exchange(idp).mock(return_value=httpx.Response(200, json={"id_token": "bad token"}))

    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_server_error(r)


@pytest.mark.asyncio
async def test_hs256_token_signed_with_wrong_secret_is_server_error(
    client: httpx.AsyncClient, idp: respx.MockRouter
) -> None:
    id_token = create_id_token("HS256", b"another secret, also long enough to sign")
    mock_registry(idp)
    mock_code_exchange(idp).mock(return_value=httpx.Response(200, json={"id_token": id_token}))

    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_server_error(r)
    assert "Signature" not in r.text


@pytest.mark.asyncio
async def test_hs256_success(client: httpx.AsyncClient, idp: respx.MockRouter) -> None:
    id_token = create_id_token("HS256", APP1_SECRET_BYTES)
    mock_registry(idp)
    mock_code_exchange(idp).mock(return_value=httpx.Response(200, json={"id_token": id_token}))
    jwks_route = idp.get(JWKS_URL)

    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_success(r)
    # HS256 verifies with the service's own secret; the JWKS endpoint is never hit.
    assert not jwks_route.called


@pytest.mark.asyncio
async def test_hs256_wrong_audience_is_server_error(
    client: httpx.AsyncClient, idp: respx.MockRouter
) -> None:
    id_token = create_id_token("HS256", APP1_SECRET_BYTES, aud="some_other_client")
    mock_registry(idp)
    mock_code_exchange(idp).mock(return_value=httpx.Response(200, json={"id_token": id_token}))

    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_server_error(r)


@pytest.mark.asyncio
async def test_unsupported_algorithm_is_server_error(
    client: httpx.AsyncClient, idp: respx.MockRouter
) -> None:
    id_token = create_id_token("HS512", APP1_SECRET_BYTES * 2)
    mock_registry(idp)
    mock_code_exchange(idp).mock(return_value=httpx.Response(200, json={"id_token": id_token}))

    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_server_error(r)


@pytest.mark.asyncio
async def test_rs256_jwks_fetch_failure_is_server_error(
    client: httpx.AsyncClient, idp: respx.MockRouter, rsa_material: RsaMaterial
) -> None:
    id_token = create_id_token("RS256", rsa_material.private_key, kid=RS256_KID)
    mock_registry(idp)
    mock_code_exchange(idp).mock(return_value=httpx.Response(200, json={"id_token": id_token}))
    idp.get(JWKS_URL).mock(side_effect=httpx.ConnectError("VOIP!"))

    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_server_error(r)


@pytest.mark.asyncio
async def test_rs256_invalid_public_key_is_server_error(
    client: httpx.AsyncClient, idp: respx.MockRouter, rsa_material: RsaMaterial
) -> None:
    id_token = create_id_token("RS256", rsa_material.private_key, kid=RS256_KID)
    mock_registry(idp)
    mock_code_exchange(idp).mock(return_value=httpx.Response(200, json={"id_token": id_token}))
    idp.get(JWKS_URL).mock(
        return_value=httpx.Response(200, json=jwks_with_x5c("invalid_public_key"))
    )

    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_server_error(r)


@pytest.mark.asyncio
@pytest.mark.parametrize("jwks", [{"keys": None}, {"keys": {"kid": RS256_KID}}, {}, []])
async def test_rs256_malformed_jwks_is_server_error(
    client: httpx.AsyncClient, idp: respx.MockRouter, rsa_material: RsaMaterial, jwks
) -> None:
    id_token = create_id_token("RS256", rsa_material.private_key, kid=RS256_KID)
    mock_registry(idp)
    mock_code_exchange(idp).mock(return_value=httpx.Response(200, json={"id_token": id_token}))
    idp.get(JWKS_URL).mock(return_value=httpx.Response(200, json=jwks))

    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_server_error(r)


@pytest.mark.asyncio
async def test_rs256_success(
    client: httpx.AsyncClient, idp: respx.MockRouter, rsa_material: RsaMaterial
) -> None:
    id_token = create_id_token("RS256", rsa_material.private_key, kid=RS256_KID)
    mock_registry(idp)
    mock_code_exchange(idp).mock(return_value=httpx.Response(200, json={"id_token": id_token}))
    jwks_route = idp.get(JWKS_URL).mock(
        return_value=httpx.Response(200, json=jwks_with_x5c(rsa_material.x5c))
    )

    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_success(r)

    # Same ticket again: stateless re-validation, public key served from cache.
    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_success(r)
    assert jwks_route.call_count == 1


@pytest.mark.asyncio
async def test_json_format(client: httpx.AsyncClient, idp: respx.MockRouter) -> None:
    id_token = create_id_token("HS256", APP1_SECRET_BYTES, groups=["staff", "faculty"])
    mock_registry(idp)
    mock_code_exchange(idp).mock(return_value=httpx.Response(200, json={"id_token": id_token}))

    r = await client.get(VALIDATE, params={**APP1_PARAMS, "format": "JSON"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/json")
    success = r.json()["serviceResponse"]["authenticationSuccess"]
    assert success["user"] == "foo@example.com"
    assert success["attributes"]["groups"] == ["staff", "faculty"]
    assert success["attributes"]["authenticationDate"]
    assert "sub" not in success["attributes"]


@pytest.mark.asyncio
async def test_json_format_server_error(client: httpx.AsyncClient, idp: respx.MockRouter) -> None:
    mock_registry(idp)
    mock_code_exchange(idp).mock(side_effect=httpx.ConnectError("VOIP!"))

    r = await client.get(VALIDATE, params={**APP1_PARAMS, "format": "json"})
    assert r.status_code == 500
    failure = r.json()["serviceResponse"]["authenticationFailure"]
    assert failure["code"] == "SERVER_ERROR"
    assert re.fullmatch(r"Error ID \S+", failure["description"])


@pytest.mark.asyncio
async def test_cas2_service_validate_path(client: httpx.AsyncClient, idp: respx.MockRouter) -> None:
    id_token = create_id_token("HS256", APP1_SECRET_BYTES)
    mock_registry(idp)
    mock_code_exchange(idp).mock(return_value=httpx.Response(200, json={"id_token": id_token}))

    r = await client.get("/serviceValidate", params=APP1_PARAMS)
    assert_cas_success(r)


@pytest.mark.asyncio
async def test_signing_algorithm_switch_never_verifies_with_cached_key(
    client: httpx.AsyncClient, idp: respx.MockRouter, rsa_material: RsaMaterial
) -> None:
    hs256_token = create_id_token("HS256", APP1_SECRET_BYTES)
    rs256_token = create_id_token("RS256", rsa_material.private_key, kid=RS256_KID)
    mock_registry(idp)
    mock_code_exchange(idp).mock(
        side_effect=[
            httpx.Response(200, json={"id_token": hs256_token}),
            httpx.Response(200, json={"id_token": rs256_token}),
        ]
    )
    jwks_route = idp.get(JWKS_URL).mock(
        return_value=httpx.Response(200, json={"keys": [rsa_material.jwk]})
    )

    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_success(r)

    # The HS256 key cached for app1 only admits HS256; the RS256 token is refused.
    r = await client.get(VALIDATE, params=APP1_PARAMS)
    assert_cas_server_error(r)
    assert not jwks_route.called


@pytest.mark.asyncio
@pytest.mark.parametrize("fmt", [None, "JSON"])
async def test_unexpected_failure_is_opaque_cas_server_error(
    app, client: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch, fmt: str | None
) -> None:
    async def broken_validate(**_):
        raise TypeError("'NoneType' object is not iterable")

    monkeypatch.setattr(app.state.cas_service, "service_validate", broken_validate)

    params = {**APP1_PARAMS, "format": fmt} if fmt else APP1_PARAMS
    r = await client.get(VALIDATE, params=params)
    assert r.status_code == 500
    assert "NoneType" not in r.text
    if fmt:
        failure = r.json()["serviceResponse"]["authenticationFailure"]
        assert failure["code"] == "SERVER_ERROR"
        assert re.fullmatch(r"Error ID \S+", failure["description"])
    else:
        assert_cas_server_error(r)


# --- Module Notes -----------------------------------------------------------
# The token endpoint mock matches the exact exchange body, including the
# redirect_uri rebuilt from the test client's base URL.
