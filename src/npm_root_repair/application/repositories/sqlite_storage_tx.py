from __future__ import annotations

import json
import sqlite3
from collections.abc import Mapping, Sequence
from typing import cast, final

from npm_root_repair.application.repositories.filesystem_blob_store import FilesystemBlobStore
from npm_root_repair.domain.models.asset import Asset
from npm_root_repair.domain.models.blob import Blob, BlobMetrics
from npm_root_repair.domain.models.repository import Repository


@final
class SqliteStorageTx:
    """Read side of one open storage transaction."""

    def __init__(self, conn: sqlite3.Connection, blob_store: FilesystemBlobStore) -> None:
        self._conn = conn
        self._blob_store = blob_store

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    @staticmethod
    def _parse_attributes(raw: object) -> dict[str, object]:
        if not isinstance(raw, str) or not raw.strip():
            return {}
        parsed = cast(object, json.loads(raw))
        if not isinstance(parsed, dict):
            return {}
        return {str(key): value for key, value in cast(dict[object, object], parsed).items()}

    def find_assets(
        self,
        where: str,
        parameters: Mapping[str, object],
        repositories: Sequence[Repository],
        suffix: str,
    ) -> list[Asset]:
        if not repositories:
            return []

        bound: dict[str, object] = dict(parameters)
        placeholders: list[str] = []
        for index, repository in enumerate(repositories):
            key = f"repository_{index}"
            bound[key] = repository.name
            placeholders.append(f":{key}")

        sql = (
            "SELECT id, repository, name, blob_ref, attributes FROM assets "
            f"WHERE repository IN ({','.join(placeholders)}) AND ({where}) {suffix}"
        )
        rows = cast(list[tuple[object, ...]], self._conn.execute(sql, bound).fetchall())
        return [
            Asset(
                id=int(cast(int, row[0])),
                repository=str(row[1]),
                name=str(row[2]),
                blob_ref=str(row[3]) if row[3] is not None else None,
                format_attributes=self._parse_attributes(row[4]),
            )
            for row in rows
        ]

    def get_blob(self, blob_ref: str) -> Blob | None:
        row = cast(
            tuple[object, ...] | None,
            self._conn.execute(
                "SELECT sha1, size FROM blobs WHERE ref = ?", (blob_ref,)
            ).fetchone(),
        )
        if row is None:
            return None
        metrics = BlobMetrics(sha1_hash=str(row[0]), size=int(cast(int, row[1] or 0)))
        return self._blob_store.get(blob_ref, metrics)
