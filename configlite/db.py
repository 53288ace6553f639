from __future__ import annotations
import logging
import sqlite3
from pathlib import Path
from typing import Union

from .errors import OpenError

logger = logging.getLogger(__name__)


def get_connection(database: Union[str, Path]) -> sqlite3.Connection:
    """Open (creating if needed) the SQLite file backing the store."""
    try:
        conn = sqlite3.connect(str(database))
    except sqlite3.Error as exc:
        raise OpenError(database, str(exc)) from exc

    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
    except sqlite3.Error as exc:
        conn.close()
        raise OpenError(database, str(exc)) from exc

    logger.debug("opened configuration database %s", database)
    return conn
