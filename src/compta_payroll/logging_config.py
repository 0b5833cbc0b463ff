"""Logging setup shared by the API server and scripts."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # SQL statements still show when engine echo (DEBUG=true) sets sqlalchemy.engine.Engine to INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
