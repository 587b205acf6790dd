"""
SQLite Backend - db_query / db_execute on sqlite3

Parameters arrive as JSON bytes: an array for positional `?` placeholders,
an object for named `:name` placeholders, or empty for none. Query results
are returned as a UTF-8 JSON array of row objects.
"""

import asyncio
import json
import sqlite3
import threading
from pathlib import Path
from typing import Any, Optional, Union

from extio.base import IoFacade
from extio.errors import ExtioError
from extio.factory import BackendFactory
from extio.utils.logger import get_logger

logger = get_logger('backend.sqlite')

# Integers wider than 64 bits fail at binding with OverflowError
DB_ERRORS = (sqlite3.Error, OverflowError)


class SqliteBackendError(ExtioError):
    """Errors raised by SqliteBackend"""


class SqliteBackend(IoFacade):
    """SQLite database backend (one connection, serialized on worker threads)"""

    Error = SqliteBackendError

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()
        logger.info(f"SQLite backend initialized (path={self.db_path})")

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection"""
        if self.conn is None:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA foreign_keys = ON")
        return self.conn

    def _decode_params(self, operation: str, params: bytes) -> Union[list, dict]:
        if not params:
            return []
        try:
            decoded = json.loads(params)
        except (ValueError, UnicodeDecodeError) as e:
            raise self.Error(
                f"Params are not valid JSON: {e}",
                operation=operation,
                backend=self.__class__.__name__,
                cause=e
            ) from e
        if not isinstance(decoded, (list, dict)):
            raise self.Error(
                "Params must be a JSON array or object",
                operation=operation,
                backend=self.__class__.__name__
            )
        return decoded

    def _run_query(self, query: str, params: Any) -> bytes:
        with self._lock:
            cursor = self._get_connection().execute(query, params)
            rows = [dict(row) for row in cursor.fetchall()]
        return json.dumps(rows, default=_encode_value).encode('utf-8')

    def _run_execute(self, query: str, params: Any) -> int:
        with self._lock:
            conn = self._get_connection()
            try:
                cursor = conn.execute(query, params)
                conn.commit()
            except DB_ERRORS:
                conn.rollback()
                raise
            return max(cursor.rowcount, 0)

    async def db_query(self, query: str, params: bytes) -> bytes:
        decoded = self._decode_params("db_query", params)
        try:
            return await asyncio.to_thread(self._run_query, query, decoded)
        except DB_ERRORS as e:
            logger.error(f"Query failed: {e}")
            raise self.Error(
                f"Query failed: {e}",
                operation="db_query",
                backend=self.__class__.__name__,
                cause=e
            ) from e

    async def db_execute(self, query: str, params: bytes) -> int:
        decoded = self._decode_params("db_execute", params)
        try:
            return await asyncio.to_thread(self._run_execute, query, decoded)
        except DB_ERRORS as e:
            logger.error(f"Statement failed: {e}")
            raise self.Error(
                f"Statement failed: {e}",
                operation="db_execute",
                backend=self.__class__.__name__,
                cause=e
            ) from e

    def close(self):
        """Close database connection"""
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None


def _encode_value(value: Any) -> Any:
    # BLOB columns come back as bytes
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    raise TypeError(f"Cannot serialize {type(value).__name__}")


# Register backend
BackendFactory.register("sqlite", SqliteBackend)
