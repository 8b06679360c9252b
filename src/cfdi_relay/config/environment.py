"""Environment configuration and validation."""

import os
import logging
from pathlib import Path

from dotenv import load_dotenv, find_dotenv

from ..constants import DEFAULT_PORT, DEFAULT_PORTAL_URL

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_env_file() -> bool:
    """Load a .env file found from the current working directory, if any."""
    path = find_dotenv(filename=".env", usecwd=True)
    if not path:
        return False
    logger.debug("Loading environment from %s", path)
    return load_dotenv(path, override=False)


def _read_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise EnvironmentError(f"{name} must be a boolean flag, got {raw!r}.")


def get_env_config() -> dict:
    """
    Read environment variables and validate them.

    Optional:   CFDI_RELAY_HOST (default '0.0.0.0')
                PORT (default 3000)
                CFDI_PORTAL_URL (default: the SAT verification page)
                CHROME_EXECUTABLE_PATH
                CFDI_HEADLESS (default on)
                CFDI_DEBUG_SCREENSHOT_DIR (page captures around the search click)
                CFDI_LOG_LEVEL (default 'INFO')
    """
    host = (os.getenv("CFDI_RELAY_HOST") or "").strip() or "0.0.0.0"

    port_env = (os.getenv("PORT") or "").strip()
    if port_env:
        if not port_env.isdigit() or not (0 < int(port_env) < 65536):
            raise EnvironmentError(f"PORT must be an integer between 1 and 65535, got {port_env!r}.")
        port = int(port_env)
    else:
        port = DEFAULT_PORT

    portal_url = (os.getenv("CFDI_PORTAL_URL") or "").strip() or DEFAULT_PORTAL_URL
    if not portal_url.startswith(("http://", "https://")):
        raise EnvironmentError(f"CFDI_PORTAL_URL must be an http(s) URL, got {portal_url!r}.")

    chrome_path = (os.getenv("CHROME_EXECUTABLE_PATH") or "").strip() or None
    if chrome_path and not Path(chrome_path).exists():
        raise EnvironmentError(f"CHROME_EXECUTABLE_PATH does not exist: {chrome_path}")

    debug_dir = (os.getenv("CFDI_DEBUG_SCREENSHOT_DIR") or "").strip() or None
    if debug_dir:
        Path(debug_dir).mkdir(parents=True, exist_ok=True)

    log_level = (os.getenv("CFDI_LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        raise EnvironmentError(f"CFDI_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {log_level!r}.")

    return {
        "host": host,
        "port": port,
        "portal_url": portal_url,
        "chrome_path": chrome_path,
        "headless": _read_bool("CFDI_HEADLESS", True),
        "debug_screenshot_dir": debug_dir,
        "log_level": log_level,
    }
