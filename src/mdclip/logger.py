"""Logging configuration for mdclip."""

import logging
import sys

from mdclip.config import settings

logger = logging.getLogger("mdclip")

# Libraries that log every request or scoring pass at INFO/DEBUG
NOISY_LOGGERS = ("httpx", "httpcore", "readability.readability")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> None:
    """Route all logging to stderr and set the mdclip level.

    stdout carries MCP traffic, so nothing may log there. With MDCLIP_DEBUG
    the mdclip logger drops to DEBUG and the HTTP and readability loggers
    report at INFO; otherwise they are held at WARNING.
    """
    logging.root.handlers = []
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT, stream=sys.stderr)

    debug = settings.mdclip_debug
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if debug else logging.WARNING)

    logger.info("mdclip logging initialized at %s level", logging.getLevelName(level))
