"""
cas_bridge.services

Service layer.

Responsibilities:
- Service registry (discovery + cache).
- CAS handshake coordination (login / callback / serviceValidate).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services raise `cas_bridge.errors` exceptions; HTTP mapping belongs to the API layer.
