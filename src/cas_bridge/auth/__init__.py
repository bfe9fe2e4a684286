"""
cas_bridge.auth

Token verification package.

Responsibilities:
- Service registration and signing key models.
- Algorithm-aware signing key resolution (HS256 shared secret, RS256 JWKS).
- id token validation and claim shaping.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Only HS256 and RS256 are accepted; everything else is rejected before any key lookup.
