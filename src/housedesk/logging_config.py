"""Logging setup for the command line."""

import logging

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_level: str | None = None) -> None:
    """Configure the root logger.

    Args:
        log_level: Level name (DEBUG, INFO, ...); WARNING when omitted or unknown
    """
    level = getattr(logging, (log_level or "WARNING").upper(), logging.WARNING)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # SQLAlchemy can be very verbose
    for name in ("sqlalchemy.engine", "sqlalchemy.dialects", "sqlalchemy.pool", "sqlalchemy.orm"):
        logging.getLogger(name).setLevel(logging.WARNING)
