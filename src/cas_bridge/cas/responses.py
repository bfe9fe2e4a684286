"""
cas_bridge.cas.responses

CAS protocol 3.0 `serviceValidate` response envelopes.

Responsibilities:
- Model success/failure results (`CasSuccess` / `CasFailure`).
- Render them as namespaced, pretty-printed XML (default) or as JSON.
"""

from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Literal

CAS_NAMESPACE = "http://www.yale.edu/tp/cas"

INVALID_TICKET = "INVALID_TICKET"
SERVER_ERROR = "SERVER_ERROR"

XML_MEDIA_TYPE = "application/xml"
JSON_MEDIA_TYPE = "application/json"

ResponseFormat = Literal["XML", "JSON"]

ET.register_namespace("cas", CAS_NAMESPACE)

_INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9_.\-]")
# Code points outside the XML 1.0 `Char` production, such as C0 controls.
_INVALID_XML_CHARS = re.compile(r"[^\x09\x0A\x0D\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")


@dataclass(frozen=True, slots=True)
class CasSuccess:
    user: str
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CasFailure:
    code: str
    description: str


CasResponse = CasSuccess | CasFailure


def parse_format(value: str | None) -> ResponseFormat:
    # CAS 3.0 `format` parameter; anything but JSON falls back to XML.
    return "JSON" if (value or "").strip().upper() == "JSON" else "XML"


def build_response(response: CasResponse, fmt: ResponseFormat = "XML") -> tuple[str, str]:
    """
    Return `(body, media_type)` for a CAS response in the requested format.
    """

    if fmt == "JSON":
        return json.dumps(to_json_payload(response)), JSON_MEDIA_TYPE
    return to_xml(response), XML_MEDIA_TYPE


def to_json_payload(response: CasResponse) -> dict[str, Any]:
    if isinstance(response, CasSuccess):
        body: dict[str, Any] = {
            "authenticationSuccess": {
                "user": response.user,
                "attributes": response.attributes,
            }
        }
    else:
        body = {
            "authenticationFailure": {
                "code": response.code,
                "description": response.description,
            }
        }
    return {"serviceResponse": body}


def to_xml(response: CasResponse) -> str:
    root = ET.Element(_cas("serviceResponse"))

    if isinstance(response, CasSuccess):
        success = ET.SubElement(root, _cas("authenticationSuccess"))
        ET.SubElement(success, _cas("user")).text = _xml_text(response.user)
        if response.attributes:
            attributes = ET.SubElement(success, _cas("attributes"))
            for name, value in response.attributes.items():
                tag = _cas(xml_attribute_name(name))
                # Multi-valued attributes are repeated elements.
                for item in value if isinstance(value, list) else [value]:
                    ET.SubElement(attributes, tag).text = _xml_text(item)
    else:
        failure = ET.SubElement(root, _cas("authenticationFailure"), code=response.code)
        failure.text = _xml_text(response.description)

    ET.indent(root, space="  ")
    return ET.tostring(root, encoding="unicode")


def xml_attribute_name(name: str) -> str:
    """
    Map a claim name (possibly a namespaced URL) onto a valid XML element name.
    """

    sanitized = _INVALID_NAME_CHARS.sub("_", name) or "_"
    if not (sanitized[0].isalpha() or sanitized[0] == "_"):
        sanitized = f"_{sanitized}"
    return sanitized


def _cas(tag: str) -> str:
    return f"{{{CAS_NAMESPACE}}}{tag}"


def _xml_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    # Upstream text (e.g. an IDP error body) may carry bytes XML cannot represent.
    return _INVALID_XML_CHARS.sub("\uFFFD", str(value))


# --- Module Notes -----------------------------------------------------------
# The XML root is emitted as `<cas:serviceResponse xmlns:cas="http://www.yale.edu/tp/cas">`
# because the `cas` prefix is registered with ElementTree at import time.
