from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

import psycopg2
from psycopg2.extras import RealDictCursor

from ..models.config_models import DatabaseConfig

"""PostgreSQL connection helpers.

接続情報の解決優先順位:
    1. `.env` で読み込まれた環境変数 (CLI が override=True で読み込み済み)
    2. DATABASE_URL / PGDSN があれば DSN 全体をそのまま使用
    3. 個別 PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    4. config の database セクション (不足分のフォールバック)
"""

__all__ = [
    "resolve_dsn",
    "db_connection",
    "dict_cursor",
]


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def db_connection(db_cfg: DatabaseConfig) -> Iterator[psycopg2.extensions.connection]:
    """Open a connection in autocommit mode.

    Transaction boundaries are issued explicitly (BEGIN / SAVEPOINT / COMMIT)
    by ``ScheduleStore``.
    """
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    conn.autocommit = True
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def dict_cursor(conn: psycopg2.extensions.connection) -> Iterator[RealDictCursor]:
    cursor = conn.cursor(cursor_factory=RealDictCursor)
    try:
        yield cursor
    finally:
        cursor.close()
