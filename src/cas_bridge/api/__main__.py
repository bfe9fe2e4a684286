"""
cas_bridge.api.__main__

Entrypoint for running the bridge via `python -m cas_bridge.api`.

Responsibilities:
- Load settings.
- Create the app.
- Start uvicorn with structlog-compatible logging config.
"""

from __future__ import annotations

import uvicorn

from cas_bridge.api.app import create_app
from cas_bridge.settings import get_settings


def main() -> None:
    settings = get_settings()
    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# Behind a TLS-terminating proxy, make sure it sets X-Forwarded-Proto so the
# OAuth2 redirect_uri keeps the https scheme (see `cas.urls.build_request_url`).
