"""
Process-wide logging setup for TradeDeck.

One pipe-delimited line per record on stdout. Ledger payloads, owner
notes and credentials never reach a log line; use cases log owner ids
and counts only.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Raised to WARNING unless asked otherwise
QUIET_LOGGERS = ("uvicorn.access", "uvicorn.error")
SQL_LOGGER = "sqlalchemy.engine"


def configure_logging(level: str = "INFO", sql_echo: bool = False) -> None:
    """Install the root handler and quiet chatty libraries.

    Args:
        level: Root level name; unknown names fall back to INFO.
        sql_echo: Leave SQLAlchemy statement logging untouched.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        stream=sys.stdout,
        force=True,
    )

    quiet = QUIET_LOGGERS if sql_echo else QUIET_LOGGERS + (SQL_LOGGER,)
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
