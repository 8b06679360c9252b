"""Element and page captures."""

import logging

from selenium import webdriver

from .elements import find_element

logger = logging.getLogger(__name__)


def screenshot_element(driver: webdriver.Chrome, selector: str) -> bytes:
    """PNG bytes of the element matching ``selector``."""
    el = find_element(driver, selector, visible_only=True)
    return el.screenshot_as_png


def save_page_screenshot(driver: webdriver.Chrome, path: str) -> None:
    """Take a screenshot of the viewport and write it to ``path``."""
    if driver.save_screenshot(path):
        logger.info("Debug screenshot saved: %s", path)
    else:
        logger.warning("Could not write debug screenshot to %s", path)


__all__ = [
    'screenshot_element',
    'save_page_screenshot',
]
