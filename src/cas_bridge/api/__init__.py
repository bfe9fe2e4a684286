"""
cas_bridge.api

API package for the CAS bridge.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring and error rendering.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer should remain thin: parameter checks + delegation to services + rendering.
