"""Selenium implementation of the Form Automation Adapter for the SAT portal."""

import logging
from typing import Dict, Optional

from ..browser.driver import BrowserHandle, create_webdriver, quit_webdriver
from ..portal import Element, SAT_SELECTORS
from .base import FormAdapter
from .elements import click_element, fill_text, is_element_visible, read_element_text
from .navigation import navigate_to_url
from .screenshots import save_page_screenshot, screenshot_element

logger = logging.getLogger(__name__)


class SeleniumFormAdapter(FormAdapter):
    """
    Drives a headless Chrome through Selenium.

    One instance can serve many sessions; all per-session state lives in the
    ``BrowserHandle`` returned by ``launch``.
    """

    def __init__(self, config: Optional[dict] = None, selectors: Optional[Dict[Element, str]] = None):
        self.config = dict(config or {})
        self.selectors = dict(SAT_SELECTORS if selectors is None else selectors)

    def _selector(self, element: Element) -> str:
        try:
            return self.selectors[element]
        except KeyError:
            raise LookupError(f"No selector configured for {element.value!r}")

    def launch(self) -> BrowserHandle:
        return create_webdriver(self.config)

    def navigate(self, handle: BrowserHandle, url: str) -> None:
        logger.debug("Navigating to %s", url)
        navigate_to_url(handle.driver, url)

    def fill(self, handle: BrowserHandle, element: Element, text: str) -> None:
        fill_text(handle.driver, self._selector(element), text)

    def screenshot_element(self, handle: BrowserHandle, element: Element) -> bytes:
        return screenshot_element(handle.driver, self._selector(element))

    def click(self, handle: BrowserHandle, element: Element) -> None:
        click_element(handle.driver, self._selector(element))

    def is_visible(self, handle: BrowserHandle, element: Element) -> bool:
        return is_element_visible(handle.driver, self._selector(element))

    def read_text(self, handle: BrowserHandle, element: Element) -> str:
        return read_element_text(handle.driver, self._selector(element))

    def close(self, handle: BrowserHandle) -> None:
        quit_webdriver(handle)

    def save_page_screenshot(self, handle: BrowserHandle, path: str) -> None:
        save_page_screenshot(handle.driver, path)


__all__ = ["SeleniumFormAdapter"]
