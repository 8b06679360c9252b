"""Error taxonomy for a relay session.

Every failure that reaches a session is turned into a ``SessionError`` once,
at the point where it is caught. Later code only looks at ``kind``.
"""

import enum
from typing import Optional

from selenium.common.exceptions import (
    SessionNotCreatedException,
    TimeoutException,
    WebDriverException,
)

from .constants import (
    CAPTCHA_REJECTED_FALLBACK,
    PROTOCOL_VIOLATION_MESSAGE,
    TIMEOUT_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
)


class ErrorKind(str, enum.Enum):
    RESOURCE_ACQUISITION = "resource_acquisition"
    TIMEOUT = "timeout"
    CAPTCHA_REJECTED = "captcha_rejected"
    PROTOCOL_VIOLATION = "protocol_violation"
    UNKNOWN = "unknown"


class SessionError(Exception):
    """A classified failure of one session."""

    def __init__(self, kind: ErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.kind.value!r}, {self.message!r})"


class ProtocolViolation(SessionError):
    """Malformed or out-of-order client message."""

    def __init__(self, message: str = ""):
        super().__init__(ErrorKind.PROTOCOL_VIOLATION, message)


class ResourceAcquisitionError(SessionError):
    """The automated browser could not be started."""

    def __init__(self, message: str = ""):
        super().__init__(ErrorKind.RESOURCE_ACQUISITION, message)


def classify(exc: BaseException, *, during_launch: bool = False) -> SessionError:
    """
    Map an exception raised by the automation layer to a ``SessionError``.

    Args:
        exc: The caught exception.
        during_launch: True when the exception came out of starting the browser.
            Any failure there means the resource was never acquired.
    """
    if isinstance(exc, SessionError):
        return exc
    message = _describe(exc)
    if during_launch or isinstance(exc, SessionNotCreatedException):
        return ResourceAcquisitionError(message)
    if isinstance(exc, (TimeoutException, TimeoutError)):
        return SessionError(ErrorKind.TIMEOUT, message)
    return SessionError(ErrorKind.UNKNOWN, message)


_SELENIUM_DOC_SUFFIX = "; For documentation on this error"


def _describe(exc: BaseException) -> str:
    # WebDriverException.__str__ prefixes "Message: " and appends the stacktrace
    if isinstance(exc, WebDriverException):
        text = (exc.msg or "").split(_SELENIUM_DOC_SUFFIX, 1)[0].strip()
    else:
        text = str(exc).strip()
    return text or exc.__class__.__name__


def client_message(error: Optional[SessionError]) -> str:
    """Text sent to the client in the ERROR event for ``error``."""
    if error is None:
        return UNKNOWN_ERROR_MESSAGE
    if error.kind is ErrorKind.TIMEOUT:
        return TIMEOUT_MESSAGE
    if error.kind is ErrorKind.CAPTCHA_REJECTED:
        return error.message or CAPTCHA_REJECTED_FALLBACK
    if error.kind is ErrorKind.PROTOCOL_VIOLATION:
        return PROTOCOL_VIOLATION_MESSAGE
    return error.message or UNKNOWN_ERROR_MESSAGE


__all__ = [
    "ErrorKind",
    "SessionError",
    "ProtocolViolation",
    "ResourceAcquisitionError",
    "classify",
    "client_message",
]
