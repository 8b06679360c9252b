"""Element finding and interaction."""

from typing import List

from bs4 import BeautifulSoup
from selenium import webdriver
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import (
    NoSuchElementException,
    StaleElementReferenceException,
)

from ..constants import ACTION_TIMEOUT_SECS


def find_element(
    driver: webdriver.Chrome,
    selector: str,
    timeout: float = ACTION_TIMEOUT_SECS,
    visible_only: bool = False,
) -> WebElement:
    """
    Locate an element by CSS selector, waiting up to ``timeout`` seconds.

    Raises selenium's TimeoutException when the element never attaches
    (or never becomes visible, with ``visible_only``).
    """
    wait = WebDriverWait(driver, timeout)
    if visible_only:
        return wait.until(EC.visibility_of_element_located((By.CSS_SELECTOR, selector)))
    return wait.until(EC.presence_of_element_located((By.CSS_SELECTOR, selector)))


def find_elements(driver: webdriver.Chrome, selector: str) -> List[WebElement]:
    """All current matches, without waiting."""
    return driver.find_elements(By.CSS_SELECTOR, selector)


def fill_text(driver: webdriver.Chrome, selector: str, text: str) -> None:
    el = find_element(driver, selector, visible_only=True)
    el.clear()
    el.send_keys(text)


def click_element(driver: webdriver.Chrome, selector: str) -> None:
    el = WebDriverWait(driver, ACTION_TIMEOUT_SECS).until(
        EC.element_to_be_clickable((By.CSS_SELECTOR, selector))
    )
    el.click()


def is_element_visible(driver: webdriver.Chrome, selector: str) -> bool:
    """True when any element matching ``selector`` is displayed right now."""
    for el in find_elements(driver, selector):
        try:
            if el.is_displayed():
                return True
        except StaleElementReferenceException:
            # Replaced by a postback between lookup and probe
            continue
    return False


def text_content(html: str) -> str:
    """DOM textContent of a markup fragment, trimmed."""
    if not html:
        return ""
    return BeautifulSoup(html, "html.parser").get_text().strip()


def read_element_text(driver: webdriver.Chrome, selector: str) -> str:
    """
    Text of the first element matching ``selector``, or "" when none matches.

    Reads outerHTML instead of ``WebElement.text`` so that labels hidden by CSS
    still return their text.
    """
    matches = find_elements(driver, selector)
    if not matches:
        return ""
    try:
        html = matches[0].get_attribute("outerHTML") or ""
    except (StaleElementReferenceException, NoSuchElementException):
        return ""
    return text_content(html)


__all__ = [
    'find_element',
    'find_elements',
    'fill_text',
    'click_element',
    'is_element_visible',
    'text_content',
    'read_element_text',
]
