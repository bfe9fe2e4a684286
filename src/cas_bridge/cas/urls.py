"""
cas_bridge.cas.urls

URL handling for CAS services and bridge endpoints.

Responsibilities:
- Normalize a service URL to the domain key used by the service registry.
- Build the post-login redirect back to the service (`?ticket=`).
- Rebuild absolute bridge URLs (e.g. the OAuth2 `redirect_uri`) from the current request.
"""

from __future__ import annotations

from urllib.parse import urlencode, urlsplit, urlunsplit

from starlette.requests import Request


def rewrite_http_port(netloc: str) -> str:
    # The bridge is only reachable over TLS externally: an explicit :80 becomes :443.
    # Nothing else about the authority is touched.
    if netloc.endswith(":80"):
        return f"{netloc[:-3]}:443"
    return netloc


def normalize_service_domain(service_url: str) -> str:
    """
    `https://Example.com:80/app1/?x=1` -> `example.com:443`; scheme, path and query are ignored.
    """

    value = service_url.strip()
    parts = urlsplit(value if "//" in value else f"//{value}")
    host = parts.netloc.rsplit("@", 1)[-1].lower()
    return rewrite_http_port(host)


def service_redirect_url(service_url: str, ticket: str) -> str:
    parts = urlsplit(service_url)
    # The service's own query is passed through untouched; only `ticket` is appended.
    ticket_param = urlencode({"ticket": ticket})
    query = f"{parts.query}&{ticket_param}" if parts.query else ticket_param
    return urlunsplit(
        (
            parts.scheme,
            rewrite_http_port(parts.netloc),
            parts.path,
            query,
            parts.fragment,
        )
    )


def build_request_url(request: Request, path: str) -> str:
    """
    Absolute URL of `path` on this bridge as seen by the browser.

    Honors `X-Forwarded-Proto: https` from a TLS-terminating proxy and the ASGI
    root path when the app is mounted under a prefix.
    """

    forwarded_proto = request.headers.get("x-forwarded-proto", "").split(",")[0].strip()
    is_secure = request.url.scheme == "https" or forwarded_proto.lower() == "https"
    host = request.headers.get("host") or request.url.netloc
    root_path = request.scope.get("root_path", "").rstrip("/")
    return f"{'https' if is_secure else 'http'}://{host}{root_path}{path}"


# --- Module Notes -----------------------------------------------------------
# The callback URL built here is sent both to /authorize and to the token endpoint;
# the IDP rejects the exchange if the two differ.
