"""
Tests for elaro/db/connection.py: pragmas, directory creation, transaction scope.
"""

from __future__ import annotations

import sqlite3

import pytest

from elaro.db.connection import MEMORY_DB, get_connection, open_connection


class TestOpenConnection:
    def test_pragmas_applied(self, tmp_path):
        conn = open_connection(str(tmp_path / "a.db"), busy_timeout_ms=1234)
        try:
            assert conn.execute("PRAGMA foreign_keys;").fetchone()[0] == 1
            assert conn.execute("PRAGMA busy_timeout;").fetchone()[0] == 1234
            assert conn.execute("PRAGMA journal_mode;").fetchone()[0].lower() == "wal"
        finally:
            conn.close()

    def test_wal_can_be_disabled(self, tmp_path):
        conn = open_connection(str(tmp_path / "a.db"), wal_mode=False)
        try:
            assert conn.execute("PRAGMA journal_mode;").fetchone()[0].lower() != "wal"
        finally:
            conn.close()

    def test_creates_parent_directories(self, tmp_path):
        target = tmp_path / "nested" / "dir" / "a.db"
        open_connection(str(target)).close()
        assert target.exists()

    def test_memory_database_rows_by_name(self):
        conn = open_connection(MEMORY_DB)
        try:
            row = conn.execute("SELECT 7 AS minutes;").fetchone()
            assert row["minutes"] == 7
        finally:
            conn.close()


class TestGetConnection:
    def test_commits_on_clean_exit(self, tmp_path):
        path = str(tmp_path / "a.db")
        with get_connection(path) as conn:
            conn.execute("CREATE TABLE t (x INTEGER);")
            conn.execute("INSERT INTO t VALUES (1);")
        with get_connection(path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM t;").fetchone()[0] == 1

    def test_rolls_back_on_error(self, tmp_path):
        path = str(tmp_path / "a.db")
        with get_connection(path) as conn:
            conn.execute("CREATE TABLE t (x INTEGER);")
        with pytest.raises(RuntimeError):
            with get_connection(path) as conn:
                conn.execute("INSERT INTO t VALUES (1);")
                raise RuntimeError("boom")
        with get_connection(path) as conn:
            assert conn.execute("SELECT COUNT(*) FROM t;").fetchone()[0] == 0

    def test_closed_after_block(self, tmp_path):
        with get_connection(str(tmp_path / "a.db")) as conn:
            pass
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1;")
