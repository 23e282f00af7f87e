from __future__ import annotations

import sqlite3
from pathlib import Path
from types import TracebackType
from typing import final

from npm_root_repair.application.repositories.filesystem_blob_store import FilesystemBlobStore
from npm_root_repair.application.repositories.sqlite_storage_tx import SqliteStorageTx


@final
class SqliteUnitOfWork:
    def __init__(self, db_path: Path, blob_store: FilesystemBlobStore) -> None:
        self._db_path = db_path
        self._blob_store = blob_store
        self._conn: sqlite3.Connection | None = None
        self.tx: SqliteStorageTx

    def __enter__(self) -> "SqliteUnitOfWork":
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), isolation_level=None)
        _ = self._conn.execute("PRAGMA journal_mode=WAL")
        _ = self._conn.execute("PRAGMA foreign_keys=ON")
        self.tx = SqliteStorageTx(self._conn, self._blob_store)
        _ = self._conn.execute("BEGIN")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._conn is None:
            return
        try:
            if exc_type:
                self.rollback()
            else:
                self.commit()
        finally:
            self._conn.close()
            self._conn = None

    def init_schema(self, schema_sql: str) -> None:
        if self._conn is None:
            raise RuntimeError("Unit of work is not open")
        self.commit()
        _ = self._conn.executescript(schema_sql)
        _ = self._conn.execute("BEGIN")

    def commit(self) -> None:
        if self._conn is not None and self._conn.in_transaction:
            _ = self._conn.execute("COMMIT")

    def rollback(self) -> None:
        if self._conn is not None and self._conn.in_transaction:
            _ = self._conn.execute("ROLLBACK")
