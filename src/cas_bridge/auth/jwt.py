"""
cas_bridge.auth.jwt

id token validation and claim shaping.

Responsibilities:
- Verify signature, audience and issuer with strict claim requirements (iss/aud/sub/iat).
- Turn verified claims into a CAS principal: user + attributes + authenticationDate.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import jwt
from jwt import InvalidTokenError

from cas_bridge.auth.models import ResolvedKey
from cas_bridge.cas.responses import CasSuccess
from cas_bridge.errors import TokenValidationError

# Never exposed as CAS attributes.
STRIPPED_CLAIMS = frozenset({"identities", "iss", "sub", "aud", "exp", "iat"})


def validate_id_token(
    *,
    token: str,
    key: ResolvedKey,
    audience: str,
    issuer: str,
) -> dict[str, Any]:
    try:
        # Only the resolved key's algorithm is allowed, so a cached HS256 key never
        # verifies an RS256 token (and vice versa).
        return jwt.decode(
            token,
            key.key,
            algorithms=[key.algorithm],
            audience=audience,
            issuer=issuer,
            options={
                "require": ["iss", "aud", "sub", "iat"],
            },
        )
    except InvalidTokenError as e:
        raise TokenValidationError(f"id token validation failed: {e}") from e


def shape_claims(claims: dict[str, Any], *, username_field: str) -> CasSuccess:
    if username_field not in claims or claims[username_field] in (None, ""):
        raise TokenValidationError(f"id token has no {username_field!r} claim")

    try:
        authenticated_at = datetime.fromtimestamp(int(claims["iat"]), tz=UTC)
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        raise TokenValidationError("id token has an invalid iat claim") from e

    attributes = {k: v for k, v in claims.items() if k not in STRIPPED_CLAIMS}
    attributes["authenticationDate"] = authenticated_at.isoformat()

    return CasSuccess(user=str(claims[username_field]), attributes=attributes)


# --- Module Notes -----------------------------------------------------------
# The username claim is kept in the attributes as well; CAS clients commonly read
# e.g. `email` from attributes even when it is also the user.
