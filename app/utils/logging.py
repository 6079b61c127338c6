import logging
import os
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def setup_logging(level: str | None = None) -> logging.Logger:
    """Configure the `app` logger once; later calls only adjust the level."""
    global _configured

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logger = logging.getLogger("app")
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not _configured:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
        _configured = True

    return logger
