"""Schema and demo-data bootstrap for the MySQL database.

Used by ``create_app`` (``AUTO_INIT_DB`` / ``AUTO_SEED_DB``) and by the
scripts in ``scripts/``.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Optional

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig
from .mysql_base import db_cursor

logger = logging.getLogger(__name__)

# One statement: quoted literals may contain ';' (the JSON meal timings do)
_STATEMENT = re.compile(r"""(?:'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|[^;'"])+""", re.S)
_DB_SELECTION = re.compile(r"^\s*(CREATE\s+DATABASE|USE)\b", re.I)

DEMO_ADMIN = ("ADMINAH", "Annapoorani Warden", "admin12345", "admin", "Annapoorani Hostel")
DEMO_STUDENT = ("11245101", "Anitha R", "student123", "student", "Annapoorani Hostel")


def split_statements(sql: str) -> Iterator[str]:
    """Yield executable statements, dropping ``--`` comments and database selection.

    The target database always comes from ``DB_CONFIG`` so one schema file
    serves development, testing and production.
    """
    body = "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))
    for match in _STATEMENT.finditer(body):
        stmt = match.group(0).strip()
        if stmt and not _DB_SELECTION.match(stmt):
            yield stmt


def _execute_file(conn_factory: DatabaseConnection, path: Path) -> int:
    executed = 0
    with db_cursor(conn_factory, dictionary=False) as (_, cur):
        for stmt in split_statements(path.read_text(encoding="utf-8")):
            cur.execute(stmt)
            executed += 1
    return executed


def ensure_database_exists(db_config: dict) -> None:
    conn_factory = DatabaseConnection(DBConfig.from_dict(db_config))
    conn = conn_factory.connect(with_database=False)
    try:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{conn_factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    path = Path(schema_path)
    executed = _execute_file(DatabaseConnection(DBConfig.from_dict(db_config)), path)
    logger.info("Applied %s (%d statements)", path.name, executed)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    path = Path(seed_path)
    executed = _execute_file(DatabaseConnection(DBConfig.from_dict(db_config)), path)
    logger.info("Applied %s (%d statements)", path.name, executed)


def ensure_demo_users(
    db_config: dict,
    *,
    super_admin_register_id: str = "SUPERADMIN",
    super_admin_password: str = "superadmin123",
) -> None:
    """Create or reset the super admin plus one demo warden and one demo student."""
    accounts: list[tuple[str, str, str, str, Optional[str]]] = [
        (super_admin_register_id.strip().upper(), "Super Admin", super_admin_password, "super_admin", None),
        DEMO_ADMIN,
        DEMO_STUDENT,
    ]

    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        for register_id, name, password, role, block in accounts:
            cur.execute(
                """
                INSERT INTO profiles (register_id, name, email, password_hash, role, hostel_block)
                VALUES (%s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    name = VALUES(name),
                    password_hash = VALUES(password_hash),
                    role = VALUES(role),
                    hostel_block = VALUES(hostel_block),
                    deactivated = 0
                """,
                (register_id, name, f"{register_id.lower()}@hostel.local", generate_password_hash(password), role, block),
            )
        conn.commit()
        logger.info("Demo accounts ready: %s", ", ".join(a[0] for a in accounts))
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
