"""
cas_bridge.errors

Error taxonomy shared by services and the API layer.

Responsibilities:
- Separate client-recoverable failures (HTTP 400) from server failures (HTTP 500).
- Carry the data the API layer needs to render each failure.

Client errors are rendered verbatim. Server errors are logged with their real
cause and reach the caller only as an opaque error id.
"""

from __future__ import annotations


class CasBridgeError(Exception):
    pass


class ClientError(CasBridgeError):
    """
    Missing/invalid input. Safe to describe to the caller.
    """

    status_code = 400


class ServerError(CasBridgeError):
    """
    Unexpected failure. The message is for logs only.
    """

    status_code = 500


class MissingParameterError(ClientError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Missing required parameter: {name}")
        self.name = name


class ServiceNotFoundError(ClientError):
    def __init__(self, service_url: str) -> None:
        super().__init__(f"Unrecognized service: {service_url}")
        self.service_url = service_url


class StateMismatchError(ClientError):
    def __init__(self) -> None:
        super().__init__(
            "Invalid session. Your session may have expired, "
            "please restart the login from the application."
        )


class InvalidTicketError(ClientError):
    """
    The token endpoint refused the ticket. `upstream_body` is echoed back to the caller.
    """

    def __init__(self, upstream_body: str, *, status: int | None = None) -> None:
        super().__init__(upstream_body)
        self.upstream_body = upstream_body
        self.status = status


class RegistryFetchError(ServerError):
    pass


class RegistryEmptyError(ServerError):
    pass


class TicketExchangeError(ServerError):
    pass


class TokenDecodeError(ServerError):
    pass


class UnsupportedAlgorithmError(ServerError):
    def __init__(self, algorithm: str | None) -> None:
        super().__init__(f"Unsupported token signing algorithm: {algorithm!r}")
        self.algorithm = algorithm


class SigningKeyError(ServerError):
    pass


class TokenValidationError(ServerError):
    pass


# --- Module Notes -----------------------------------------------------------
# Routers map `ClientError` subclasses to 400 and every `ServerError` to 500 with
# an error id (see `api.routers.cas`). Nothing in the service layer builds HTTP responses.
