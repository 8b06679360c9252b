"""Navigation and page readiness."""

import logging

from selenium import webdriver
from selenium.common.exceptions import TimeoutException
from selenium.webdriver.support.ui import WebDriverWait

from ..constants import WAIT_TIMEOUT_SECS

logger = logging.getLogger(__name__)


def _wait_document_ready(driver: webdriver.Chrome, timeout: float = 10.0) -> None:
    """Wait for document to be ready."""
    try:
        WebDriverWait(driver, timeout).until(
            lambda d: d.execute_script("return document.readyState") in ("interactive", "complete")
        )
    except TimeoutException:
        # Not fatal; the element waits that follow have their own bounds
        logger.debug("document.readyState did not settle within %.1fs", timeout)


def navigate_to_url(driver: webdriver.Chrome, url: str) -> None:
    """Navigate to URL."""
    driver.set_page_load_timeout(WAIT_TIMEOUT_SECS * 2)
    driver.get(url)
    _wait_document_ready(driver)


__all__ = [
    '_wait_document_ready',
    'navigate_to_url',
]
