import multiprocessing
import sqlite3

import pytest

from configlite.errors import MigrationError
from configlite.migrations import MIGRATIONS, Migration, run_migrations
from configlite.repository import Repository


def _open_and_close(path):
    Repository(path).close()
    return "ok"


def _max_version(conn):
    row = conn.execute("SELECT MAX(version) FROM schema_migrations").fetchone()
    return row[0] or 0


def _tables(path):
    conn = sqlite3.connect(str(path))
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    finally:
        conn.close()
    return {r[0] for r in rows}


def test_open_creates_schema(db_path):
    Repository(db_path).close()
    assert {"applications", "configurations", "schema_migrations"} <= _tables(db_path)


def test_migrations_applied_once(db_path):
    Repository(db_path).close()
    Repository(db_path).close()

    conn = sqlite3.connect(str(db_path))
    try:
        versions = [r[0] for r in conn.execute("SELECT version FROM schema_migrations ORDER BY version")]
        assert versions == [m.version for m in MIGRATIONS]
        assert _max_version(conn) == MIGRATIONS[-1].version
        assert run_migrations(conn, db_path) == []
    finally:
        conn.close()


def test_pending_migration_is_applied(db_path):
    Repository(db_path).close()
    extra = Migration(3, "add index", ("CREATE INDEX idx_configurations_app ON configurations(application_name)",))

    conn = sqlite3.connect(str(db_path))
    try:
        assert run_migrations(conn, db_path, MIGRATIONS + (extra,)) == [3]
        assert _max_version(conn) == 3
    finally:
        conn.close()


def test_checksum_mismatch(db_path):
    Repository(db_path).close()
    conn = sqlite3.connect(str(db_path))
    conn.execute("UPDATE schema_migrations SET checksum='tampered' WHERE version=1")
    conn.commit()
    conn.close()

    with pytest.raises(MigrationError) as excinfo:
        Repository(db_path)
    assert "checksum" in str(excinfo.value)


def test_failed_migration_rolls_back(db_path):
    broken = Migration(1, "broken", ("CREATE TABLE t (x TEXT)", "NOT SQL"))
    conn = sqlite3.connect(str(db_path))
    try:
        with pytest.raises(MigrationError):
            run_migrations(conn, db_path, (broken,))
        assert _max_version(conn) == 0
        assert conn.execute("SELECT name FROM sqlite_master WHERE name='t'").fetchone() is None
    finally:
        conn.close()


def test_concurrent_opens_apply_each_migration_once(db_path):
    ctx = multiprocessing.get_context("spawn")
    with ctx.Pool(8) as pool:
        results = pool.map(_open_and_close, [str(db_path)] * 8)
    assert results == ["ok"] * 8

    conn = sqlite3.connect(str(db_path))
    try:
        versions = [r[0] for r in conn.execute("SELECT version FROM schema_migrations ORDER BY version")]
    finally:
        conn.close()
    assert versions == [m.version for m in MIGRATIONS]
