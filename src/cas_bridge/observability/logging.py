"""
cas_bridge.observability.logging

Structured logging configuration for the bridge.

Responsibilities:
- Configure `structlog` for JSON logs tagged with the service name.
- Mask credentials (client secrets, codes, tokens) that end up in event fields.
- Provide a small wrapper for obtaining bound loggers.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

REDACTED = "[redacted]"

# Field names whose values are credentials in this service. A CAS ticket is an
# IDP authorization code, so it is masked like one.
SENSITIVE_FIELDS = frozenset(
    {
        "client_secret",
        "api_client_secret",
        "session_secret",
        "access_token",
        "id_token",
        "code",
        "ticket",
        "state",
        "session",
    }
)


def configure_logging(*, service_name: str, level: str) -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name(service_name),
            redact_sensitive_fields,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def redact_sensitive_fields(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in SENSITIVE_FIELDS.intersection(event_dict):
        if event_dict[key] not in (None, ""):
            event_dict[key] = REDACTED
    return event_dict


def _add_service_name(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# --- Module Notes -----------------------------------------------------------
# Redaction works on field names only; free-text messages (e.g. exception text)
# are not scanned, so never format secrets into them.
