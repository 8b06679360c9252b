"""Browser resource ownership and process management."""

from .lifecycle import ActionResult, BrowserResource

__all__ = [
    "ActionResult",
    "BrowserResource",
]
