"""
Global constants and configuration defaults.
No dependencies - safe to import from anywhere.
"""

import os

# ============================================================================
# Bounded Wait Configuration
# ============================================================================

WAIT_TIMEOUT_SECS = float(os.getenv("CFDI_WAIT_TIMEOUT_SECS", "15"))
"""Budget for every bounded wait on page state (CAPTCHA image, result/error race)."""

POLL_INTERVAL_SECS = float(os.getenv("CFDI_POLL_INTERVAL_SECS", "0.25"))
"""How often the supervisor re-evaluates its conditions."""

ACTION_TIMEOUT_SECS = float(os.getenv("CFDI_ACTION_TIMEOUT_SECS", "10"))
"""Maximum time a single element lookup may take before the adapter gives up."""


# ============================================================================
# Portal
# ============================================================================

DEFAULT_PORTAL_URL = "https://verificacfdi.facturaelectronica.sat.gob.mx/default.aspx"

DEFAULT_PORT = 3000


# ============================================================================
# Client-facing Messages
# ============================================================================

CAPTCHA_REJECTED_FALLBACK = "El CAPTCHA es incorrecto."
"""Used when the portal shows its error panel without any text."""

TIMEOUT_MESSAGE = "CAPTCHA incorrecto o el sitio no respondió"
"""A bounded wait expired; the cause cannot be told apart from outside."""

PROTOCOL_VIOLATION_MESSAGE = "Mensaje inválido o fuera de orden."

UNKNOWN_ERROR_MESSAGE = "Ocurrió un error desconocido en el servidor."


__all__ = [
    "WAIT_TIMEOUT_SECS",
    "POLL_INTERVAL_SECS",
    "ACTION_TIMEOUT_SECS",
    "DEFAULT_PORTAL_URL",
    "DEFAULT_PORT",
    "CAPTCHA_REJECTED_FALLBACK",
    "TIMEOUT_MESSAGE",
    "PROTOCOL_VIOLATION_MESSAGE",
    "UNKNOWN_ERROR_MESSAGE",
]
