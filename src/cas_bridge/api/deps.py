"""
cas_bridge.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Expose the app-scoped CAS service stored on app.state.
- Provide the reusable required-query-parameter check.
"""

from __future__ import annotations

from fastapi import Request

from cas_bridge.errors import MissingParameterError
from cas_bridge.services.cas_service import CasService


def cas_service_dep(request: Request) -> CasService:
    # Stashed on app.state by `cas_bridge.api.app.create_app`.
    return request.app.state.cas_service  # type: ignore[attr-defined]


def require_params(*names: str):
    """
    Dependency factory: every named query parameter must be present and non-empty.
    """

    def _dep(request: Request) -> None:
        # Checked in declaration order, so the first missing name is reported.
        for name in names:
            if not request.query_params.get(name):
                raise MissingParameterError(name)

    return _dep


# --- Module Notes -----------------------------------------------------------
# `MissingParameterError` is rendered as plain text by the handlers in `api.errors`.
