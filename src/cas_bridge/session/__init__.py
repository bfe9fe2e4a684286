"""
cas_bridge.session

Per-browser session support.

Responsibilities:
- Encrypted, tamper-evident cookie session with absolute and idle expiry.
- The CAS handshake state kept in that session.
"""

# Package marker.
