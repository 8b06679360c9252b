"""
Form Automation Adapter.

``FormAdapter`` is the blocking, per-page interface the session drives;
``SeleniumFormAdapter`` implements it against the SAT verification page.
The lower-level modules (elements, navigation, screenshots) take a Selenium
driver and a CSS selector.
"""

from .base import FormAdapter
from .adapter import SeleniumFormAdapter

__all__ = [
    "FormAdapter",
    "SeleniumFormAdapter",
]
