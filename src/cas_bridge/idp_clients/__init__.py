"""
cas_bridge.idp_clients

HTTP clients for the upstream OpenID Connect identity provider.

Responsibilities:
- Derive IDP endpoint URLs from the tenant domain.
- Wrap the management API (service discovery) and the token endpoint (ticket exchange).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Clients here only talk HTTP and map transport outcomes to `cas_bridge.errors`;
# caching and CAS semantics live in `cas_bridge.services`.
