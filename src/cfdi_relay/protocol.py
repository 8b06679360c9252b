"""JSON envelope codec for the client connection.

Inbound frames look like ``{"type": ..., "data": {...}}`` and decode into one
of a closed set of request classes. Outbound events encode to
``{"type": ..., "payload": {...}}``.
"""

import json
import base64
from dataclasses import dataclass, fields
from typing import Union

from .errors import ProtocolViolation


# ============================================================================
# Wire Types
# ============================================================================

GET_CAPTCHA = "GET_CAPTCHA"
SOLVE_CAPTCHA = "SOLVE_CAPTCHA"

CAPTCHA_READY = "CAPTCHA_READY"
SCRAPE_SUCCESS = "SCRAPE_SUCCESS"
ERROR = "ERROR"


# ============================================================================
# Inbound
# ============================================================================

@dataclass(frozen=True)
class StartRequest:
    """Lookup key supplied by the client: (document fingerprint, issuer, receiver)."""
    uuid: str
    rfc_emisor: str
    rfc_receptor: str


@dataclass(frozen=True)
class SolveRequest:
    captcha_solution: str


Request = Union[StartRequest, SolveRequest]

# type -> (request class, ((wire name, attribute name), ...))
_INBOUND = {
    GET_CAPTCHA: (StartRequest, (("uuid", "uuid"), ("rfcEmisor", "rfc_emisor"), ("rfcReceptor", "rfc_receptor"))),
    SOLVE_CAPTCHA: (SolveRequest, (("captchaSolution", "captcha_solution"),)),
}


def decode(raw: Union[str, bytes]) -> Request:
    """
    Parse one inbound frame.

    Raises:
        ProtocolViolation: the frame is not JSON, has an unknown ``type``, or
            its ``data`` is missing a required non-empty string field.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise ProtocolViolation("frame is not valid UTF-8")
    try:
        envelope = json.loads(raw)
    except (ValueError, RecursionError) as e:
        raise ProtocolViolation(f"frame is not valid JSON: {e}")

    if not isinstance(envelope, dict):
        raise ProtocolViolation("envelope must be a JSON object")
    kind = envelope.get("type")
    if not isinstance(kind, str) or kind not in _INBOUND:
        raise ProtocolViolation(f"unknown message type: {kind!r}")
    data = envelope.get("data")
    if not isinstance(data, dict):
        raise ProtocolViolation(f"{kind}: 'data' must be a JSON object")

    cls, field_map = _INBOUND[kind]
    values = {}
    for wire_name, attr in field_map:
        value = data.get(wire_name)
        if not isinstance(value, str) or not value.strip():
            raise ProtocolViolation(f"{kind}: '{wire_name}' must be a non-empty string")
        values[attr] = value.strip()
    return cls(**values)


# ============================================================================
# Outbound
# ============================================================================

@dataclass(frozen=True)
class CfdiResult:
    """The ten fields of a verified receipt. Unread fields are empty strings."""
    rfc_emisor: str = ""
    nombre_emisor: str = ""
    rfc_receptor: str = ""
    nombre_receptor: str = ""
    folio_fiscal: str = ""
    fecha_expedicion: str = ""
    total_cfdi: str = ""
    efecto_comprobante: str = ""
    estado_cfdi: str = ""
    estatus_cancelacion: str = ""

    def to_payload(self) -> dict:
        return {_camel(f.name): str(getattr(self, f.name) or "") for f in fields(self)}


RESULT_FIELDS = tuple(f.name for f in fields(CfdiResult))


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass(frozen=True)
class CaptchaReady:
    image: bytes
    type = CAPTCHA_READY

    def payload(self) -> dict:
        return {"captchaImage": base64.b64encode(self.image).decode("ascii")}


@dataclass(frozen=True)
class ScrapeSuccess:
    result: CfdiResult
    type = SCRAPE_SUCCESS

    def payload(self) -> dict:
        return self.result.to_payload()


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    type = ERROR

    def payload(self) -> dict:
        return {"message": self.message}


Event = Union[CaptchaReady, ScrapeSuccess, ErrorEvent]


def encode(event: Event) -> str:
    return json.dumps({"type": event.type, "payload": event.payload()}, ensure_ascii=False)


__all__ = [
    "GET_CAPTCHA",
    "SOLVE_CAPTCHA",
    "CAPTCHA_READY",
    "SCRAPE_SUCCESS",
    "ERROR",
    "StartRequest",
    "SolveRequest",
    "Request",
    "decode",
    "CfdiResult",
    "RESULT_FIELDS",
    "CaptchaReady",
    "ScrapeSuccess",
    "ErrorEvent",
    "Event",
    "encode",
]
