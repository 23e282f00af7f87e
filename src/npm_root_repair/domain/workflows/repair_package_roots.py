from __future__ import annotations

import logging
from pathlib import Path
from typing import final

from filelock import FileLock, Timeout

from npm_root_repair.domain.models.asset import Asset
from npm_root_repair.domain.models.batch_cursor import BatchCursor, next_cursor
from npm_root_repair.domain.models.repository import Repository
from npm_root_repair.domain.models.results import BatchResult, RepositoryRepairResult
from npm_root_repair.domain.protocols.repository_registry_protocol import (
    RepositoryRegistryProtocol,
)
from npm_root_repair.domain.protocols.storage_tx_protocol import StorageTxProtocol
from npm_root_repair.domain.protocols.transactional_batch_runner_protocol import (
    TransactionalBatchRunnerProtocol,
)
from npm_root_repair.domain.workflows.load_asset_batch import LoadAssetBatch
from npm_root_repair.domain.workflows.reconcile_package_root import ReconcilePackageRoot


@final
class RepairPackageRoots:
    """Reprocess every tarball of the hosted repositories and fix stale package roots.

    Package roots written by an old defect may carry checksums that do not
    match their tarballs. Each repository is walked in id order, one
    transaction per batch, until a batch comes back short or empty.
    """

    def __init__(
        self,
        repository_registry: RepositoryRegistryProtocol,
        batch_runner: TransactionalBatchRunnerProtocol,
        load_asset_batch: LoadAssetBatch,
        reconcile_package_root: ReconcilePackageRoot,
        target_format: str,
        lock_path: Path,
        lock_timeout_seconds: float,
        logger: logging.Logger,
        isolate_repository_failures: bool = False,
    ) -> None:
        self._repository_registry = repository_registry
        self._batch_runner = batch_runner
        self._load_asset_batch = load_asset_batch
        self._reconcile_package_root = reconcile_package_root
        self._target_format = target_format
        self._lock = FileLock(str(lock_path))
        self._lock_timeout_seconds = max(0.0, float(lock_timeout_seconds))
        self._logger = logger
        self._isolate_repository_failures = bool(isolate_repository_failures)

    def repair(self) -> None:
        try:
            _ = self._lock.acquire(timeout=self._lock_timeout_seconds)
        except Timeout:
            self._logger.warning("Repair skipped: another repair pass is still running")
            return

        try:
            self._logger.info("Beginning processing all %s packages for repair", self._target_format)
            repositories = [
                repository
                for repository in self._repository_registry.browse()
                if repository.matches(self._target_format)
            ]
            for repository in repositories:
                self._repair_repository_guarded(repository)
            self._logger.info(
                "Repair pass completed: repositories: %d", len(repositories)
            )
        finally:
            self._lock.release()

    def _repair_repository_guarded(self, repository: Repository) -> None:
        if not self._isolate_repository_failures:
            _ = self.repair_repository(repository)
            return
        try:
            _ = self.repair_repository(repository)
        except Exception:
            self._logger.exception(
                "Repair of repository %s failed; continuing with next repository",
                repository.name,
            )

    def repair_repository(self, repository: Repository) -> RepositoryRepairResult:
        cursor: BatchCursor | None = BatchCursor.BEGINNING
        batches = scanned = repaired = 0
        while cursor is not None:
            result = self.process_batch(repository, cursor)
            cursor = result.next_cursor
            batches += 1
            scanned += result.scanned
            repaired += result.repaired

        self._logger.info(
            "Finished processing all %s packages for repair: repository: %s, batches: %d, scanned: %d, repaired: %d",
            self._target_format,
            repository.name,
            batches,
            scanned,
            repaired,
        )
        return RepositoryRepairResult(
            repository=repository.name,
            batches=batches,
            scanned=scanned,
            repaired=repaired,
        )

    def process_batch(self, repository: Repository, cursor: BatchCursor) -> BatchResult:
        self._logger.info(
            "Processing next batch of %s packages for repair. Starting at id = %s with max batch size = %d",
            self._target_format,
            cursor.value,
            self._load_asset_batch.batch_size,
        )

        def work(tx: StorageTxProtocol) -> BatchResult:
            assets = self._load_asset_batch(tx, repository, cursor)
            return self._update_assets(tx, repository, assets)

        return self._batch_runner.run(repository, work)

    def _update_assets(
        self, tx: StorageTxProtocol, repository: Repository, assets: list[Asset]
    ) -> BatchResult:
        repaired = 0
        for asset in assets:
            if not asset.is_tarball or not asset.blob_ref:
                continue
            blob = tx.get_blob(asset.blob_ref)
            if blob is None:
                self._logger.debug("Skipping asset %s: blob %s not found", asset.name, asset.blob_ref)
                continue
            if self._reconcile_package_root(tx, repository, asset, blob):
                repaired += 1
        return BatchResult(
            next_cursor=next_cursor(assets, self._load_asset_batch.batch_size),
            scanned=len(assets),
            repaired=repaired,
        )
