"""
cas_bridge.auth.keys

Signing key resolution for IDP-issued id tokens.

Responsibilities:
- Read the unverified token header (`alg`, `kid`).
- HS256: derive the key from the service's own client secret (no network).
- RS256: fetch the public key from the IDP JWKS endpoint by `kid`.
- Cache the resolved key per client id.
"""

from __future__ import annotations

import base64
import string
from typing import Any

import httpx
import jwt
from cryptography import x509
from jwt.algorithms import RSAAlgorithm

from cas_bridge.auth.models import ResolvedKey, ServiceRegistration
from cas_bridge.cache import Cache
from cas_bridge.errors import SigningKeyError, TokenDecodeError, UnsupportedAlgorithmError
from cas_bridge.idp_clients.endpoints import IdpEndpoints
from cas_bridge.observability.logging import get_logger
from cas_bridge.settings import Settings

log = get_logger(__name__)

SUPPORTED_ALGORITHMS = ("HS256", "RS256")

_B64_ALPHABET = frozenset(string.ascii_letters + string.digits + "+/")
_URLSAFE_TO_STD = str.maketrans("-_", "+/")


def decode_client_secret(secret: str) -> bytes:
    """
    Decode a base64 client secret the way the IDP signs with it.

    Accepts the url-safe alphabet and missing padding; other characters are ignored.
    """

    chars = "".join(ch for ch in secret.translate(_URLSAFE_TO_STD) if ch in _B64_ALPHABET)
    if len(chars) % 4 == 1:
        # A lone trailing sextet cannot carry a full byte.
        chars = chars[:-1]
    return base64.b64decode(chars + "=" * (-len(chars) % 4))


def cache_key_for(client_id: str) -> str:
    return f"signing_key:{client_id}"


class SigningKeyResolver:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient, cache: Cache) -> None:
        self._http = http
        self._cache = cache
        self._endpoints = IdpEndpoints(settings.idp_domain)

    async def resolve_key(self, *, registration: ServiceRegistration, token: str) -> ResolvedKey:
        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as e:
            raise TokenDecodeError(f"Could not decode id token header: {e}") from e

        alg = header.get("alg")
        if alg not in SUPPORTED_ALGORITHMS:
            raise UnsupportedAlgorithmError(alg)

        # Keyed by client id only: a client is assumed to keep its signing algorithm.
        cached = self._cache.get(cache_key_for(registration.client_id))
        if cached is not None:
            return cached

        if alg == "HS256":
            resolved = ResolvedKey(
                client_id=registration.client_id,
                algorithm=alg,
                key=decode_client_secret(registration.client_secret),
            )
        else:
            resolved = ResolvedKey(
                client_id=registration.client_id,
                algorithm=alg,
                key=await self._fetch_public_key(header.get("kid")),
            )

        self._cache.set(cache_key_for(registration.client_id), resolved)
        log.info("signing_key_cached", client_id=registration.client_id, alg=alg)
        return resolved

    async def _fetch_public_key(self, kid: str | None) -> Any:
        if not kid:
            raise SigningKeyError("RS256 id token has no kid header")

        try:
            r = await self._http.get(self._endpoints.jwks_url)
        except httpx.HTTPError as e:
            raise SigningKeyError(f"Could not fetch JWKS: {e!r}") from e
        if not r.is_success:
            raise SigningKeyError(f"Could not fetch JWKS. status={r.status_code}")

        try:
            jwks = r.json()
        except ValueError as e:
            raise SigningKeyError("JWKS response is not JSON") from e

        keys = jwks.get("keys") if isinstance(jwks, dict) else None
        if not isinstance(keys, list):
            raise SigningKeyError("JWKS response has no keys array")
        for jwk in keys:
            if isinstance(jwk, dict) and jwk.get("kid") == kid:
                return public_key_from_jwk(jwk)
        raise SigningKeyError(f"No signing key with kid={kid!r} in JWKS")


def public_key_from_jwk(jwk: dict[str, Any]) -> Any:
    """
    Build an RSA public key from a JWK, preferring `n`/`e` over the `x5c` certificate chain.
    """

    try:
        if jwk.get("n") and jwk.get("e"):
            return RSAAlgorithm.from_jwk(jwk)
        x5c = jwk.get("x5c") or []
        if x5c:
            cert = x509.load_der_x509_certificate(base64.b64decode(x5c[0]))
            return cert.public_key()
    except (jwt.InvalidKeyError, ValueError, TypeError) as e:
        raise SigningKeyError(f"Invalid JWK for kid={jwk.get('kid')!r}: {e}") from e
    raise SigningKeyError(f"JWK for kid={jwk.get('kid')!r} has neither n/e nor x5c")


# --- Module Notes -----------------------------------------------------------
# There is no TTL and no refresh-on-failure: after an IDP key rotation, tokens
# verified against a stale cached RS256 key fail with a server error until the
# cache is reset externally.
