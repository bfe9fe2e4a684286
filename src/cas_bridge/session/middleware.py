"""
cas_bridge.session.middleware

Encrypted client-side session cookie.

Responsibilities:
- Encrypt/decrypt the session dict into a single cookie (Fernet: AES-CBC + HMAC).
- Enforce an idle expiry (token age) and an absolute expiry (session creation time).
- Expose the session as `request.session`, like Starlette's SessionMiddleware.
"""

from __future__ import annotations

import base64
import json
import time
from collections.abc import Callable
from typing import Any

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from cas_bridge.observability.logging import get_logger

log = get_logger(__name__)

_KDF_SALT = b"cas-bridge-session"
_KDF_ITERATIONS = 100_000


def derive_session_key(secret: str) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=_KDF_SALT,
        iterations=_KDF_ITERATIONS,
    )
    return base64.urlsafe_b64encode(kdf.derive(secret.encode("utf-8")))


class SessionCodec:
    """
    Serializes `{"created": <epoch>, "data": {...}}` into a Fernet token.

    The Fernet timestamp is refreshed on every encode, so its age is the idle time.
    """

    def __init__(
        self,
        *,
        secret: str,
        absolute_ttl_seconds: int,
        idle_ttl_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._fernet = Fernet(derive_session_key(secret))
        self._absolute_ttl = absolute_ttl_seconds
        self._idle_ttl = idle_ttl_seconds
        self._clock = clock

    def encode(self, data: dict[str, Any], *, created: int | None = None) -> str:
        now = int(self._clock())
        envelope = {"created": created if created is not None else now, "data": data}
        token = self._fernet.encrypt_at_time(json.dumps(envelope).encode("utf-8"), now)
        return token.decode("ascii")

    def decode(self, token: str) -> tuple[int | None, dict[str, Any]]:
        """
        Return `(created, data)`; a tampered, idle-expired or absolutely-expired
        token yields `(None, {})`.
        """

        now = int(self._clock())
        try:
            raw = self._fernet.decrypt_at_time(
                token.encode("ascii"), ttl=self._idle_ttl, current_time=now
            )
            envelope = json.loads(raw)
        except (InvalidToken, UnicodeError, ValueError):
            return None, {}

        if not isinstance(envelope, dict) or not isinstance(envelope.get("data"), dict):
            return None, {}
        created = envelope.get("created")
        if not isinstance(created, int) or now - created > self._absolute_ttl:
            return None, {}
        return created, envelope["data"]


class EncryptedSessionMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        *,
        secret: str,
        cookie_name: str = "cas-session",
        absolute_ttl_seconds: int = 24 * 60 * 60,
        idle_ttl_seconds: int = 30 * 60,
        https_only: bool = True,
    ) -> None:
        super().__init__(app)
        self._codec = SessionCodec(
            secret=secret,
            absolute_ttl_seconds=absolute_ttl_seconds,
            idle_ttl_seconds=idle_ttl_seconds,
        )
        self._cookie_name = cookie_name
        self._max_age = absolute_ttl_seconds
        self._https_only = https_only

    async def dispatch(self, request: Request, call_next) -> Response:
        raw = request.cookies.get(self._cookie_name)
        created, data = self._codec.decode(raw) if raw else (None, {})
        if raw and created is None:
            log.info("session_cookie_rejected")

        # Endpoints read and mutate this dict through `request.session`.
        request.scope["session"] = data
        response: Response = await call_next(request)

        session = request.scope.get("session") or {}
        if session:
            response.set_cookie(
                self._cookie_name,
                self._codec.encode(dict(session), created=created),
                max_age=self._max_age,
                path="/",
                secure=self._https_only,
                httponly=True,
                samesite="lax",
            )
        elif raw:
            # Cleared (or invalid) session: drop the cookie.
            response.delete_cookie(
                self._cookie_name,
                path="/",
                secure=self._https_only,
                httponly=True,
                samesite="lax",
            )
        return response


# --- Module Notes -----------------------------------------------------------
# SameSite=Lax keeps the cookie on the IDP's top-level GET redirect to /callback.
