"""
cas_bridge.auth.models

Auth domain models.

Responsibilities:
- Define the credentials a CAS service is known by (`ServiceRegistration`).
- Define the cached verification key (`ResolvedKey`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ServiceRegistration:
    """
    One CAS-enabled IDP application, keyed by the normalized domain of its service URL.
    """

    service_domain: str
    client_id: str
    client_secret: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class ResolvedKey:
    client_id: str
    algorithm: str
    # bytes for HS256, a `cryptography` RSA public key for RS256
    key: Any = field(repr=False)


# --- Module Notes -----------------------------------------------------------
# Both models are immutable so they can be shared through the process-wide caches.
