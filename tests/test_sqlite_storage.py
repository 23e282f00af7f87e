from __future__ import annotations

import base64
import hashlib
import sqlite3
from pathlib import Path
from typing import Callable

import pytest

from conftest import StorageSeeder

from npm_root_repair.application.app import RepairApp
from npm_root_repair.application.repositories.filesystem_blob_store import FilesystemBlobStore
from npm_root_repair.application.repositories.sqlite_batch_runner import SqliteBatchRunner
from npm_root_repair.application.repositories.sqlite_package_root_store import (
    SqlitePackageRootStore,
)
from npm_root_repair.application.repositories.sqlite_repository_registry import (
    SqliteRepositoryRegistry,
)
from npm_root_repair.application.repositories.sqlite_storage_tx import SqliteStorageTx
from npm_root_repair.application.repositories.sqlite_unit_of_work import SqliteUnitOfWork
from npm_root_repair.config.settings_loader import SettingsLoader
from npm_root_repair.domain.errors import (
    PackageRootConflictError,
    PackageRootReadError,
    TransactionError,
)
from npm_root_repair.domain.models.batch_cursor import BatchCursor
from npm_root_repair.domain.models.package_id import NpmPackageId
from npm_root_repair.domain.models.package_root import find_dist_value
from npm_root_repair.domain.models.repository import Repository, RepositoryType
from npm_root_repair.domain.protocols.storage_tx_protocol import StorageTxProtocol
from npm_root_repair.domain.workflows.load_asset_batch import LoadAssetBatch

HOSTED = Repository("npm-hosted", "npm", RepositoryType.HOSTED)


def _uow_factory(storage: StorageSeeder) -> Callable[[], SqliteUnitOfWork]:
    blob_store = FilesystemBlobStore(storage.blobs_dir)
    return lambda: SqliteUnitOfWork(storage.db_path, blob_store)


def _stale_root(name: str, version: str, integrity: str | None) -> dict[str, object]:
    dist: dict[str, object] = {"shasum": "0000", "tarball": "old"}
    if integrity is not None:
        dist["integrity"] = integrity
    return {
        "_id": name,
        "name": name,
        "dist-tags": {"latest": version},
        "versions": {
            version: {"name": name, "version": version, "dist": dist},
            "0.0.1": {"name": name, "version": "0.0.1", "dist": {"shasum": "keep"}},
        },
    }


def test_sqlite_repository_registry_given_rows_when_browsed_then_returns_typed_repositories(
    storage: StorageSeeder,
) -> None:
    storage.add_repository("npm-hosted")
    storage.add_repository("npm-proxy", type_="proxy")
    storage.add_repository("weird", type_="mirror")

    repositories = SqliteRepositoryRegistry(storage.db_path).browse()

    assert repositories == [
        Repository("npm-hosted", "npm", RepositoryType.HOSTED),
        Repository("npm-proxy", "npm", RepositoryType.PROXY),
    ]


def test_sqlite_storage_tx_given_assets_when_loaded_then_pages_in_id_order_per_repository(
    storage: StorageSeeder,
) -> None:
    storage.add_repository("npm-hosted")
    storage.add_repository("other")
    ids = [storage.add_asset("npm-hosted", f"a{i}", None) for i in range(5)]
    _ = storage.add_asset("other", "foreign", None)

    with _uow_factory(storage)() as uow:
        first = LoadAssetBatch(3)(uow.tx, HOSTED, BatchCursor.BEGINNING)
        second = LoadAssetBatch(3)(uow.tx, HOSTED, BatchCursor(first[-1].id))

    assert [asset.id for asset in first] == ids[:3]
    assert [asset.id for asset in second] == ids[3:]
    assert all(asset.is_tarball for asset in first)


def test_sqlite_storage_tx_given_blob_rows_when_resolved_then_handles_missing_metrics_and_files(
    storage: StorageSeeder,
) -> None:
    recorded = storage.add_blob("ab01", b"content")
    storage.add_blob("cd02", b"gone")
    (storage.blobs_dir / "cd" / "cd02").unlink()

    with _uow_factory(storage)() as uow:
        blob = uow.tx.get_blob("ab01")
        missing_file = uow.tx.get_blob("cd02")
        missing_row = uow.tx.get_blob("ef03")
        assert blob is not None
        with blob.open_stream() as stream:
            assert stream.read() == b"content"

    assert blob.metrics.sha1_hash == recorded
    assert blob.metrics.size == 7
    assert missing_file is None
    assert missing_row is None


def test_sqlite_package_root_store_given_expected_revision_mismatch_when_put_then_raises(
    storage: StorageSeeder,
) -> None:
    storage.add_repository("npm-hosted")
    storage.put_root("npm-hosted", "left-pad", {"_id": "left-pad"})
    store = SqlitePackageRootStore()
    package_id = NpmPackageId.parse("left-pad")

    with _uow_factory(storage)() as uow:
        root = store.get_package_root(uow.tx, HOSTED, package_id)
        assert root is not None and root["_rev"] == "1"
        store.put_package_root(uow.tx, HOSTED, package_id, "1", {"_id": "left-pad", "x": 1})
        with pytest.raises(PackageRootConflictError):
            store.put_package_root(uow.tx, HOSTED, package_id, "1", {"_id": "left-pad", "x": 2})

    stored = storage.get_root("npm-hosted", "left-pad")
    assert stored is not None
    revision, document = stored
    assert revision == 2
    assert document["x"] == 1
    assert document["_rev"] == "2"


def test_sqlite_batch_runner_given_failing_work_when_run_then_rolls_back(
    storage: StorageSeeder,
) -> None:
    storage.add_repository("npm-hosted")
    runner = SqliteBatchRunner(_uow_factory(storage))

    def work(tx: StorageTxProtocol) -> None:
        SqlitePackageRootStore().put_package_root(
            tx, HOSTED, NpmPackageId.parse("left-pad"), None, {"_id": "left-pad"}
        )
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        runner.run(HOSTED, work)

    assert storage.get_root("npm-hosted", "left-pad") is None


def test_sqlite_batch_runner_given_sqlite_error_when_run_then_raises_transaction_error(
    storage: StorageSeeder,
) -> None:
    runner = SqliteBatchRunner(_uow_factory(storage))

    def work(tx: StorageTxProtocol) -> None:
        assert isinstance(tx, SqliteStorageTx)
        _ = tx.connection.execute("SELECT * FROM no_such_table")

    with pytest.raises(TransactionError) as excinfo:
        runner.run(HOSTED, work)

    assert excinfo.value.repository == "npm-hosted"
    assert isinstance(excinfo.value.__cause__, sqlite3.Error)


def test_repair_app_given_seeded_storage_when_repaired_then_fixes_roots_end_to_end(
    temp_workspace: Path,
    storage: StorageSeeder,
    npm_tarball: Callable[..., bytes],
) -> None:
    storage.add_repository("npm-hosted")
    storage.add_repository("npm-proxy", type_="proxy")

    sha1_tgz = npm_tarball({"name": "left-pad", "version": "1.0.0"})
    sha512_tgz = npm_tarball({"name": "@acme/widget", "version": "2.1.0"})
    plain_tgz = npm_tarball({"name": "is-odd", "version": "3.0.0"})
    orphan_tgz = npm_tarball({"name": "orphan", "version": "1.0.0"})
    for ref, content in (("aa01", sha1_tgz), ("bb02", sha512_tgz), ("cc03", plain_tgz), ("dd04", orphan_tgz)):
        _ = storage.add_blob(ref, content)

    _ = storage.add_asset("npm-hosted", "left-pad/-/left-pad-1.0.0.tgz", "aa01")
    _ = storage.add_asset("npm-hosted", "left-pad", None, kind="PACKAGE_ROOT")
    _ = storage.add_asset("npm-hosted", "@acme/widget/-/widget-2.1.0.tgz", "bb02")
    _ = storage.add_asset("npm-hosted", "is-odd/-/is-odd-3.0.0.tgz", "cc03")
    _ = storage.add_asset("npm-hosted", "orphan/-/orphan-1.0.0.tgz", "dd04")
    _ = storage.add_asset("npm-hosted", "ghost/-/ghost-1.0.0.tgz", "ee05")
    _ = storage.add_asset("npm-proxy", "left-pad/-/left-pad-1.0.0.tgz", "aa01")

    storage.put_root("npm-hosted", "left-pad", _stale_root("left-pad", "1.0.0", "sha1-AAAA"))
    storage.put_root("npm-hosted", "@acme/widget", _stale_root("@acme/widget", "2.1.0", "sha512-BBBB"))
    storage.put_root("npm-hosted", "is-odd", _stale_root("is-odd", "3.0.0", None))
    storage.put_root("npm-proxy", "left-pad", _stale_root("left-pad", "1.0.0", "sha1-AAAA"))

    settings = temp_workspace / "configs" / "settings.ini"
    _ = settings.write_text("REPAIR_BATCH_SIZE=2\n", encoding="utf-8")
    config = SettingsLoader.load(settings, app_root=temp_workspace)
    app = RepairApp(config)

    assert app.run_once() == 0

    left_pad = storage.get_root("npm-hosted", "left-pad")
    widget = storage.get_root("npm-hosted", "@acme/widget")
    is_odd = storage.get_root("npm-hosted", "is-odd")
    proxy = storage.get_root("npm-proxy", "left-pad")
    assert left_pad is not None and widget is not None and is_odd is not None and proxy is not None

    assert left_pad[0] == 2
    assert find_dist_value(left_pad[1], "1.0.0", "shasum") == hashlib.sha1(sha1_tgz).hexdigest()
    assert find_dist_value(left_pad[1], "1.0.0", "integrity") == "sha1-" + base64.b64encode(
        hashlib.sha1(sha1_tgz).digest()
    ).decode("ascii")
    assert find_dist_value(left_pad[1], "0.0.1", "shasum") == "keep"

    assert find_dist_value(widget[1], "2.1.0", "integrity") == "sha512-" + base64.b64encode(
        hashlib.sha512(sha512_tgz).digest()
    ).decode("ascii")

    assert find_dist_value(is_odd[1], "3.0.0", "shasum") == hashlib.sha1(plain_tgz).hexdigest()
    assert find_dist_value(is_odd[1], "3.0.0", "integrity") is None

    assert proxy[0] == 1
    assert storage.get_root("npm-hosted", "orphan") is None

    assert app.run_once() == 0
    second = storage.get_root("npm-hosted", "left-pad")
    assert second is not None and second[0] == 2


@pytest.mark.parametrize("document_text", ["{not json", "[1, 2]"])
def test_sqlite_package_root_store_given_undecodable_document_when_read_then_raises(
    storage: StorageSeeder, document_text: str
) -> None:
    storage.add_repository("npm-hosted")
    storage.put_raw_root("npm-hosted", "broken", document_text)

    with _uow_factory(storage)() as uow:
        with pytest.raises(PackageRootReadError) as excinfo:
            _ = SqlitePackageRootStore().get_package_root(uow.tx, HOSTED, NpmPackageId.parse("broken"))

    assert excinfo.value.package_id == "broken"


def test_repair_app_given_corrupt_root_before_stale_root_when_repaired_then_repairs_stale_root(
    temp_workspace: Path,
    storage: StorageSeeder,
    npm_tarball: Callable[..., bytes],
) -> None:
    storage.add_repository("npm-hosted")
    broken_tgz = npm_tarball({"name": "broken", "version": "1.0.0"})
    good_tgz = npm_tarball({"name": "good", "version": "1.0.0"})
    _ = storage.add_blob("aa01", broken_tgz)
    _ = storage.add_blob("bb02", good_tgz)
    _ = storage.add_asset("npm-hosted", "broken/-/broken-1.0.0.tgz", "aa01")
    _ = storage.add_asset("npm-hosted", "good/-/good-1.0.0.tgz", "bb02")
    storage.put_raw_root("npm-hosted", "broken", "{not json")
    storage.put_root("npm-hosted", "good", _stale_root("good", "1.0.0", None))

    config = SettingsLoader.load(temp_workspace / "configs" / "settings.ini", app_root=temp_workspace)

    assert RepairApp(config).run_once() == 0

    good = storage.get_root("npm-hosted", "good")
    assert good is not None
    assert good[0] == 2
    assert find_dist_value(good[1], "1.0.0", "shasum") == hashlib.sha1(good_tgz).hexdigest()
    with sqlite3.connect(storage.db_path) as conn:
        row = conn.execute(
            "SELECT revision, document FROM package_roots WHERE package_id = 'broken'"
        ).fetchone()
    assert row == (1, "{not json")
