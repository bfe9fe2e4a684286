"""
cas_bridge.session.state

Typed shape of the CAS handshake state stored in the browser session.
"""

from __future__ import annotations

import enum
from typing import TypedDict


class SessionPhase(str, enum.Enum):
    NEW = "NEW"
    AWAITING_CALLBACK = "AWAITING_CALLBACK"
    TICKET_ISSUED = "TICKET_ISSUED"


class CasSessionState(TypedDict, total=False):
    # Anti-forgery value sent as OAuth2 `state`
    state: str
    service_url: str
    # Authorization code, reused as the CAS ticket
    code: str
    phase: str


def session_phase(session: CasSessionState) -> SessionPhase:
    try:
        return SessionPhase(session.get("phase", SessionPhase.NEW.value))
    except ValueError:
        return SessionPhase.NEW


# --- Module Notes -----------------------------------------------------------
# Values must stay JSON-serializable: the whole dict is encrypted into the cookie.
