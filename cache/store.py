"""
cache/store.py -- SQLite-backed cache for GitHub API responses.

Avoids redundant GitHub calls (and the unauthenticated 60 req/hour limit) by
storing response JSON locally. Each entry records its own expiry, so a
per-call ttl can shorten or extend the default (GITHUB_CACHE_TTL, 1 hour).
Keys are namespaced, case-insensitive strings such as "github:stats:octocat".

The connection is shared by FastAPI's worker threads, so every statement runs
under one lock.

Usage:
    cache = ResponseCache("cache/portfolio_cache.db")
    data = cache.get_or_set("github:stats:octocat", lambda: fetch_stats("octocat"))
    cache.invalidate("github:")      # drop a whole namespace
    cache.purge_expired()            # call periodically to trim old entries
"""

import json
import sqlite3
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Optional, Union

_DEFAULT_TTL = 60 * 60  # seconds

_DDL = """
CREATE TABLE IF NOT EXISTS response_cache (
    cache_key   TEXT PRIMARY KEY,
    payload     TEXT NOT NULL,
    expires_at  REAL NOT NULL
);
"""


class ResponseCache:
    def __init__(self, db_path: Union[Path, str], ttl: int = _DEFAULT_TTL) -> None:
        self.ttl = ttl
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        with self._lock:
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute(_DDL)
            self._conn.commit()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value for key, or None if missing or expired."""
        with self._lock:
            row = self._conn.execute(
                "SELECT payload, expires_at FROM response_cache WHERE cache_key = ?",
                (key.lower(),),
            ).fetchone()
            if row is None:
                return None
            payload, expires_at = row
            if expires_at <= time.time():
                self._conn.execute("DELETE FROM response_cache WHERE cache_key = ?", (key.lower(),))
                self._conn.commit()
                return None
        return json.loads(payload)

    def set(self, key: str, data: Any, ttl: Optional[int] = None) -> None:
        expires_at = time.time() + (self.ttl if ttl is None else ttl)
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO response_cache (cache_key, payload, expires_at) VALUES (?, ?, ?)",
                (key.lower(), json.dumps(data), expires_at),
            )
            self._conn.commit()

    def get_or_set(self, key: str, loader: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Return the cached value, or call loader() and cache its result.

        Exceptions from loader() propagate and nothing is cached, so a failed
        upstream call is retried on the next request.
        """
        data = self.get(key)
        if data is None:
            data = loader()
            self.set(key, data, ttl)
        return data

    def invalidate(self, prefix: str) -> int:
        """Delete every entry whose key starts with prefix. Returns rows removed."""
        pattern = prefix.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
        with self._lock:
            cursor = self._conn.execute(
                "DELETE FROM response_cache WHERE cache_key LIKE ? ESCAPE '\\'",
                (pattern,),
            )
            self._conn.commit()
        return cursor.rowcount

    def purge_expired(self) -> int:
        with self._lock:
            cursor = self._conn.execute("DELETE FROM response_cache WHERE expires_at <= ?", (time.time(),))
            self._conn.commit()
        return cursor.rowcount

    def close(self) -> None:
        with self._lock:
            self._conn.close()
