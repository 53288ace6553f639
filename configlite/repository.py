"""Repository of application configuration values stored in SQLite.

Several applications share a single database file; each one owns a flat
namespace of string settings.
"""
from __future__ import annotations
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from .db import get_connection
from .errors import (
    ConfigNotFoundError,
    ConstraintViolationError,
    NoRowsAffectedError,
    QueryError,
    RepositoryClosedError,
)
from .migrations import run_migrations

logger = logging.getLogger(__name__)


class Repository:
    def __init__(self, database: Union[str, Path]):
        self.database = str(database)
        conn = get_connection(self.database)
        try:
            applied = run_migrations(conn, self.database)
        except Exception:
            conn.close()
            raise
        if applied:
            logger.debug("applied migrations %s to %s", applied, self.database)
        self._conn: Optional[sqlite3.Connection] = conn

    def __enter__(self) -> "Repository":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._conn is None

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @property
    def _db(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RepositoryClosedError()
        return self._conn

    @contextmanager
    def _query(self, context: str) -> Iterator[sqlite3.Connection]:
        """Run statements in one transaction, mapping driver errors to QueryError."""
        conn = self._db
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise QueryError(f"{context}: {exc}") from exc

    # -----------------------
    # Applications
    # -----------------------
    def list_applications(self) -> List[str]:
        with self._query("cannot list registered applications") as conn:
            rows = conn.execute("SELECT name FROM applications ORDER BY name").fetchall()
        return [r["name"] for r in rows]

    def register_application(self, name: str) -> None:
        """Register `name`; registering an existing application is a no-op."""
        with self._query(f"cannot register application: {name}") as conn:
            conn.execute("INSERT INTO applications(name) VALUES(?) ON CONFLICT DO NOTHING", (name,))
        logger.debug("registered application %s", name)

    def must_register_application(self, name: str) -> None:
        """Register `name`, failing with ConstraintViolationError if it already exists."""
        try:
            with self._query(f"cannot register application: {name}") as conn:
                conn.execute("INSERT INTO applications(name) VALUES(?)", (name,))
        except QueryError as exc:
            if isinstance(exc.__cause__, sqlite3.IntegrityError):
                raise ConstraintViolationError(f"application already registered: {name}") from exc.__cause__
            raise

    # -----------------------
    # Configurations
    # -----------------------
    def get_all_configs(self, application: str) -> Dict[str, str]:
        with self._query(f"cannot get configurations from database: {application}") as conn:
            rows = conn.execute(
                """
                SELECT configuration_name, configuration_value
                FROM configurations
                WHERE application_name = ?
                ORDER BY configuration_name
                """,
                (application,),
            ).fetchall()
        return {r["configuration_name"]: r["configuration_value"] for r in rows}

    def get_config(self, application: str, configuration: str) -> str:
        with self._query(
            f"cannot get configuration from database: ({application}, {configuration})"
        ) as conn:
            row = conn.execute(
                """
                SELECT configuration_value
                FROM configurations
                WHERE application_name = ? AND configuration_name = ?
                """,
                (application, configuration),
            ).fetchone()
        if row is None:
            raise ConfigNotFoundError(application, configuration)
        return row["configuration_value"]

    def upsert_config(self, application: str, configuration: str, value: str) -> None:
        """Insert or replace a value; the application is registered on the way."""
        with self._query(f"cannot upsert configuration: ({application}, {configuration})") as conn:
            conn.execute("INSERT INTO applications(name) VALUES(?) ON CONFLICT DO NOTHING", (application,))
            conn.execute(
                """
                INSERT INTO configurations(application_name, configuration_name, configuration_value)
                VALUES(?, ?, ?)
                ON CONFLICT(application_name, configuration_name)
                DO UPDATE SET configuration_value = excluded.configuration_value
                """,
                (application, configuration, value),
            )
        logger.debug("upserted (%s, %s)", application, configuration)

    def delete_config(self, application: str, configuration: str, use_pattern: bool = False) -> int:
        """Delete one entry, or every entry whose name matches a LIKE pattern.

        Returns the number of deleted rows; deleting nothing raises
        NoRowsAffectedError.
        """
        op = "LIKE" if use_pattern else "="
        with self._query(f"cannot delete a specific config ({application}, {configuration})") as conn:
            cur = conn.execute(
                f"DELETE FROM configurations WHERE application_name = ? AND configuration_name {op} ?",
                (application, configuration),
            )
        if cur.rowcount == 0:
            raise NoRowsAffectedError(application, configuration)
        logger.debug("deleted %d configuration(s) of %s matching %s", cur.rowcount, application, configuration)
        return cur.rowcount
