from __future__ import annotations
import hashlib
import logging
import sqlite3
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

from .constants import MIGRATIONS_TABLE
from .errors import MigrationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    version: int
    description: str
    statements: Tuple[str, ...]

    @property
    def checksum(self) -> str:
        digest = hashlib.sha256()
        for stmt in self.statements:
            digest.update(stmt.strip().encode("utf-8"))
            digest.update(b"\0")
        return digest.hexdigest()


MIGRATIONS: Tuple[Migration, ...] = (
    Migration(
        version=1,
        description="create applications table",
        statements=(
            """
            CREATE TABLE applications (
                name TEXT UNIQUE PRIMARY KEY
            )
            """,
        ),
    ),
    Migration(
        version=2,
        description="create configurations table",
        statements=(
            """
            CREATE TABLE configurations (
                application_name TEXT NOT NULL,
                configuration_name TEXT NOT NULL,
                configuration_value TEXT NOT NULL,
                UNIQUE (application_name, configuration_name)
            )
            """,
        ),
    ),
)


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _ensure_history_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} (
            version INTEGER PRIMARY KEY,
            description TEXT NOT NULL,
            checksum TEXT NOT NULL,
            applied_at TEXT NOT NULL,
            execution_time REAL NOT NULL
        )
        """
    )


def _applied(conn: sqlite3.Connection) -> Dict[int, str]:
    rows = conn.execute(f"SELECT version, checksum FROM {MIGRATIONS_TABLE}").fetchall()
    return {int(r[0]): r[1] for r in rows}


def _validate(applied: Dict[int, str], migrations: Sequence[Migration]) -> None:
    known = {m.version: m for m in migrations}
    for version, checksum in sorted(applied.items()):
        migration = known.get(version)
        if migration is None:
            raise ValueError(f"database has unknown migration version {version}")
        if migration.checksum != checksum:
            raise ValueError(f"checksum mismatch for migration version {version}")


def run_migrations(
    conn: sqlite3.Connection,
    database: Union[str, Path],
    migrations: Sequence[Migration] = MIGRATIONS,
) -> List[int]:
    """Apply every pending migration in version order.

    History is read under a write lock (BEGIN IMMEDIATE), so concurrent
    processes opening the same fresh file apply each step once. All pending
    steps commit together or not at all. Returns the versions applied.
    """
    ordered = sorted(migrations, key=lambda m: m.version)
    done: List[int] = []
    try:
        _ensure_history_table(conn)
        conn.execute("BEGIN IMMEDIATE")
        applied = _applied(conn)
        _validate(applied, ordered)

        for migration in ordered:
            if migration.version in applied:
                continue
            started = time.perf_counter()
            for stmt in migration.statements:
                conn.execute(stmt)
            conn.execute(
                f"""
                INSERT INTO {MIGRATIONS_TABLE}(version, description, checksum, applied_at, execution_time)
                VALUES(?, ?, ?, ?, ?)
                """,
                (
                    migration.version,
                    migration.description,
                    migration.checksum,
                    _utcnow_iso(),
                    time.perf_counter() - started,
                ),
            )
            done.append(migration.version)
            logger.debug("applied migration %s: %s", migration.version, migration.description)

        conn.commit()
    except (sqlite3.Error, ValueError) as exc:
        if conn.in_transaction:
            conn.rollback()
        raise MigrationError(database, str(exc)) from exc

    return done
