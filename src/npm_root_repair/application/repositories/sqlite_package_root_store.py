from __future__ import annotations

import json
import sqlite3
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import cast, final

from npm_root_repair.application.repositories.sqlite_storage_tx import SqliteStorageTx
from npm_root_repair.domain.errors import PackageRootConflictError, PackageRootReadError
from npm_root_repair.domain.models.package_id import NpmPackageId
from npm_root_repair.domain.models.package_root import META_REV, PackageRoot
from npm_root_repair.domain.models.repository import Repository
from npm_root_repair.domain.protocols.storage_tx_protocol import StorageTxProtocol


@final
class SqlitePackageRootStore:
    """Package-root documents kept as JSON, one row per (repository, package id).

    ``_rev`` inside the document mirrors the row revision and is bumped on
    every write.
    """

    @staticmethod
    def _connection(tx: StorageTxProtocol) -> sqlite3.Connection:
        if not isinstance(tx, SqliteStorageTx):
            raise TypeError(f"Unsupported transaction type: {type(tx).__name__}")
        return tx.connection

    def get_package_root(
        self, tx: StorageTxProtocol, repository: Repository, package_id: NpmPackageId
    ) -> PackageRoot | None:
        row = cast(
            tuple[object, ...] | None,
            self._connection(tx)
            .execute(
                "SELECT revision, document FROM package_roots WHERE repository = ? AND package_id = ?",
                (repository.name, package_id.id),
            )
            .fetchone(),
        )
        if row is None:
            return None
        try:
            document = cast(object, json.loads(str(row[1])))
        except ValueError as exc:
            raise PackageRootReadError(package_id.id, str(exc)) from exc
        if not isinstance(document, dict):
            raise PackageRootReadError(package_id.id, "document is not a JSON object")
        package_root = cast(PackageRoot, document)
        package_root[META_REV] = str(row[0])
        return package_root

    def put_package_root(
        self,
        tx: StorageTxProtocol,
        repository: Repository,
        package_id: NpmPackageId,
        expected_revision: str | None,
        package_root: Mapping[str, object],
    ) -> None:
        conn = self._connection(tx)
        row = cast(
            tuple[object, ...] | None,
            conn.execute(
                "SELECT revision FROM package_roots WHERE repository = ? AND package_id = ?",
                (repository.name, package_id.id),
            ).fetchone(),
        )
        current = int(cast(int, row[0])) if row is not None else None
        if expected_revision is not None and str(current) != str(expected_revision):
            raise PackageRootConflictError(
                package_id.id, expected_revision, str(current) if current is not None else None
            )

        revision = (current or 0) + 1
        document = dict(package_root)
        document[META_REV] = str(revision)
        now = datetime.now(UTC).replace(microsecond=0).isoformat()
        _ = conn.execute(
            """
            INSERT INTO package_roots (repository, package_id, revision, document, updated_at)
            VALUES (:repository, :package_id, :revision, :document, :updated_at)
            ON CONFLICT(repository, package_id)
            DO UPDATE SET
                revision=excluded.revision,
                document=excluded.document,
                updated_at=excluded.updated_at
            """,
            {
                "repository": repository.name,
                "package_id": package_id.id,
                "revision": revision,
                "document": json.dumps(document, ensure_ascii=True, sort_keys=True),
                "updated_at": now,
            },
        )
