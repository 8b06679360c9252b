"""
Per-connection session state.

A ``Session`` is created by the connection handler when a client connects
and handed to the ``SessionMachine`` that drives it. Nothing here is global:
two connections never see each other's session or browser.

Invariants:
    - at most one browser is held, through ``resource``;
    - ``result`` is set only in COMPLETED, ``last_error`` only in FAILED.
"""

import enum
from dataclasses import dataclass, field
from typing import Optional

from .browser.lifecycle import BrowserResource
from .errors import SessionError
from .protocol import CfdiResult


class SessionState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_CAPTCHA_INPUT = "awaiting_captcha_input"
    SOLVING = "solving"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({SessionState.COMPLETED, SessionState.FAILED})


@dataclass(frozen=True)
class LookupKey:
    """Which receipt to verify: fiscal folio UUID, issuer RFC, receiver RFC."""
    uuid: str
    rfc_emisor: str
    rfc_receptor: str


@dataclass
class Session:
    """
    Encapsulates all state of one connection's lookup.

    Attributes:
        resource: Browser owned exclusively by this session
        state: Current workflow state
        lookup_key: Set once by the GET_CAPTCHA request
        captcha_image: PNG captured for the client; dropped once an answer arrives
        result: Verification record, only in COMPLETED
        last_error: Classified failure, only in FAILED
    """

    resource: BrowserResource
    state: SessionState = SessionState.IDLE
    lookup_key: Optional[LookupKey] = None
    captcha_image: Optional[bytes] = None
    result: Optional[CfdiResult] = None
    last_error: Optional[SessionError] = None
    session_id: str = field(default="")

    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def label(self) -> str:
        """Short identifier for log lines."""
        if self.lookup_key is not None:
            return self.lookup_key.uuid
        return self.session_id or "-"


__all__ = [
    "SessionState",
    "TERMINAL_STATES",
    "LookupKey",
    "Session",
]
