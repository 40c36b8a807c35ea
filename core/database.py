"""
core/database.py -- SQLAlchemy engine factory shared by UserStore and ContentStore.

SQLAlchemy Core keeps the stores database-agnostic: swapping SQLite for
PostgreSQL is a DATABASE_URL change. SQLite gets two connection tweaks:

  check_same_thread=False -- FastAPI runs sync handlers in a thread pool, so a
      pooled connection may be used by a thread other than its creator.
  WAL journal mode -- readers proceed without blocking during writes.

JSON columns are written with ensure_ascii=False, so non-ASCII text is stored
as-is and text matching on a JSON column (the blog tag filter) sees it
unescaped.
"""

import json

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL per connection; SQLite PRAGMAs are not inherited from the pool."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _dump_json(value) -> str:
    return json.dumps(value, ensure_ascii=False)


def create_store_engine(db_url: str) -> Engine:
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args, json_serializer=_dump_json)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine
