"""Form Automation Adapter interface.

An adapter drives one automated browser page. Every method is blocking and
may raise; callers run them off the event loop and classify failures.
Element arguments are ``portal.Element`` names, never raw selectors.
"""

import abc
from typing import Any

from ..portal import Element


class FormAdapter(abc.ABC):

    @abc.abstractmethod
    def launch(self) -> Any:
        """Start an isolated browser session and return its handle."""

    @abc.abstractmethod
    def navigate(self, handle: Any, url: str) -> None:
        ...

    @abc.abstractmethod
    def fill(self, handle: Any, element: Element, text: str) -> None:
        ...

    @abc.abstractmethod
    def screenshot_element(self, handle: Any, element: Element) -> bytes:
        """PNG bytes of ``element`` as rendered."""

    @abc.abstractmethod
    def click(self, handle: Any, element: Element) -> None:
        ...

    @abc.abstractmethod
    def is_visible(self, handle: Any, element: Element) -> bool:
        """Non-blocking probe used by the supervisor's polls."""

    @abc.abstractmethod
    def read_text(self, handle: Any, element: Element) -> str:
        """Trimmed text content of ``element``; empty when it is absent."""

    @abc.abstractmethod
    def close(self, handle: Any) -> None:
        """Shut the browser down. Must tolerate an already closed handle."""

    def save_page_screenshot(self, handle: Any, path: str) -> None:
        """Write a page capture to ``path``. Adapters may leave this a no-op."""
        return None


__all__ = ["FormAdapter"]
