"""
Entry point: ``python -m cfdi_relay``.

Reads configuration from the environment (and a .env file, if present),
configures logging and serves WebSocket clients until interrupted.
"""

import os
import sys
import asyncio
import logging
import tempfile

from cfdi_relay.config import get_env_config, load_env_file
from cfdi_relay.server import serve_forever

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> str:
    """Log to stderr and to a file in the temp directory; returns the file path."""
    log_filename = os.path.join(tempfile.gettempdir(), "cfdi_relay.log")
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_filename),
            logging.StreamHandler(sys.stderr),
        ],
        force=True,
    )
    # Selenium and urllib3 are chatty at DEBUG
    for noisy in ("selenium", "urllib3", "websockets"):
        logging.getLogger(noisy).setLevel(max(logging.INFO, logging.getLogger().level))
    return log_filename


def main() -> int:
    load_env_file()
    try:
        config = get_env_config()
    except EnvironmentError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    log_file = configure_logging(config["log_level"])
    logger.info("Logging to %s", log_file)

    try:
        asyncio.run(serve_forever(config))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
