"""
Human-in-the-loop relay for the SAT CFDI verification portal.

A client opens a WebSocket and sends GET_CAPTCHA with the receipt's UUID,
issuer RFC and receiver RFC. The server fills the portal form in a headless
browser and returns the CAPTCHA image (CAPTCHA_READY). The client sends the
operator's answer (SOLVE_CAPTCHA); the server submits it and returns either
the verification record (SCRAPE_SUCCESS) or an ERROR, then closes.

Each connection owns exactly one browser. It is released when the lookup
ends, fails, or the client disconnects.
"""

__version__ = "0.1.0"

from .protocol import CfdiResult
from .session import SessionMachine

__all__ = [
    "__version__",
    "CfdiResult",
    "SessionMachine",
]
