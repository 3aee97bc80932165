from __future__ import annotations

import pytest

from src.hostel_food_review.hostel_food_review.database.bootstrap import _execute_file, split_statements


class FakeCursor:
    def __init__(self, fail_on: str | None = None):
        self.fail_on = fail_on
        self.executed = []
        self.closed = False

    def execute(self, stmt):
        if self.fail_on and self.fail_on in stmt:
            raise RuntimeError("syntax error")
        self.executed.append(stmt)

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, cursor: FakeCursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeFactory:
    def __init__(self, conn: FakeConnection):
        self.conn = conn

    def connect(self, *, with_database: bool = True):
        return self.conn


SQL = """
-- hostel schema
CREATE DATABASE IF NOT EXISTS hostel_food_review;
USE hostel_food_review;
CREATE TABLE hostel_blocks (name VARCHAR(100) PRIMARY KEY);
INSERT INTO site_settings (setting_key, setting_value) VALUES ('meal_timings', '{"a": "x;y"}');
"""


def test_split_statements_skips_comments_and_database_selection():
    stmts = list(split_statements(SQL))

    assert len(stmts) == 2
    assert stmts[0].startswith("CREATE TABLE hostel_blocks")
    assert "'{\"a\": \"x;y\"}'" in stmts[1]


def test_execute_file_commits_every_statement(tmp_path):
    path = tmp_path / "schema.sql"
    path.write_text(SQL, encoding="utf-8")
    cur = FakeCursor()
    conn = FakeConnection(cur)

    assert _execute_file(FakeFactory(conn), path) == 2
    assert conn.committed and conn.closed


def test_execute_file_rolls_back_and_closes_on_failure(tmp_path):
    path = tmp_path / "seed.sql"
    path.write_text(SQL, encoding="utf-8")
    cur = FakeCursor(fail_on="INSERT INTO site_settings")
    conn = FakeConnection(cur)

    with pytest.raises(RuntimeError):
        _execute_file(FakeFactory(conn), path)

    assert conn.rolled_back and not conn.committed
    assert cur.closed and conn.closed
