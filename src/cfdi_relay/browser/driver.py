"""WebDriver creation and teardown."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service as ChromeService

from .process import snapshot_process_tree, terminate_processes

logger = logging.getLogger(__name__)

CHROME_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--window-size=1280,1024",
)


@dataclass
class BrowserHandle:
    """One launched Chrome, plus the OS processes that belong to it."""
    driver: webdriver.Chrome
    pids: List[int] = field(default_factory=list)
    closed: bool = False


def build_options(config: dict) -> Options:
    options = Options()
    chrome_path = config.get("chrome_path")
    if chrome_path:
        options.binary_location = chrome_path
    if config.get("headless", True):
        options.add_argument("--headless=new")
    for arg in CHROME_ARGS:
        options.add_argument(arg)
    return options


def create_webdriver(config: dict) -> BrowserHandle:
    """Start chromedriver and a fresh Chrome with a throwaway profile."""
    service = ChromeService()
    driver = webdriver.Chrome(service=service, options=build_options(config))

    pid: Optional[int] = None
    proc = getattr(driver.service, "process", None)
    if proc is not None:
        pid = proc.pid
    pids = snapshot_process_tree(pid) if pid else []
    logger.debug("Chrome started (chromedriver pid=%s, %d processes)", pid, len(pids))
    return BrowserHandle(driver=driver, pids=pids)


def quit_webdriver(handle: BrowserHandle) -> None:
    """Quit the driver and reap whatever it left behind. Safe to call twice."""
    if handle.closed:
        return
    handle.closed = True
    try:
        handle.driver.quit()
    except WebDriverException as e:
        logger.warning("driver.quit() failed, terminating processes directly: %s", e.msg)
    finally:
        leftovers = terminate_processes(handle.pids)
        if leftovers:
            logger.warning("Killed %d leftover Chrome processes", leftovers)


__all__ = [
    'CHROME_ARGS',
    'BrowserHandle',
    'build_options',
    'create_webdriver',
    'quit_webdriver',
]
