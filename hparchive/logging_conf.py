"""Logging setup shared by the CLI entry points."""
import logging
import sys
from typing import Optional

from hparchive.config import config

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Request/response summaries come from our own hooks
NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging to stderr."""
    level_name = (level or config.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
