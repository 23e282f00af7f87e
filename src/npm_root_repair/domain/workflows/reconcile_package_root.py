from __future__ import annotations

import logging
from typing import final

from npm_root_repair.domain.errors import ManifestParseError, PackageRootReadError
from npm_root_repair.domain.models.asset import Asset
from npm_root_repair.domain.models.blob import Blob
from npm_root_repair.domain.models.package_id import NpmPackageId
from npm_root_repair.domain.models.package_root import (
    INTEGRITY,
    P_NAME,
    P_VERSION,
    SHASUM,
    PackageRoot,
    create_full_package_metadata,
    find_dist_value,
    get_dist,
    merge_package_root,
)
from npm_root_repair.domain.models.repository import Repository
from npm_root_repair.domain.protocols.package_parser_protocol import PackageParserProtocol
from npm_root_repair.domain.protocols.package_root_store_protocol import PackageRootStoreProtocol
from npm_root_repair.domain.protocols.storage_tx_protocol import StorageTxProtocol
from npm_root_repair.domain.workflows.recalculate_integrity import RecalculateIntegrity

REPAIR_EVENT = "repair_event"
PACKAGE_ROOT_REPAIRED = "package_root_repaired"


@final
class ReconcilePackageRoot:
    """Rewrite a package root when its stored shasum disagrees with the tarball blob.

    Existing roots are corrected, never created. ``integrity`` is only
    recomputed for versions that already carried one, keeping the announced
    algorithm family.
    """

    def __init__(
        self,
        package_parser: PackageParserProtocol,
        package_root_store: PackageRootStoreProtocol,
        recalculate_integrity: RecalculateIntegrity,
        logger: logging.Logger,
    ) -> None:
        self._package_parser = package_parser
        self._package_root_store = package_root_store
        self._recalculate_integrity = recalculate_integrity
        self._logger = logger

    def __call__(
        self,
        tx: StorageTxProtocol,
        repository: Repository,
        asset: Asset,
        blob: Blob,
    ) -> bool:
        package_json = self._package_parser.parse_package_json(blob.open_stream)
        try:
            package_id = NpmPackageId.parse(str(package_json.get(P_NAME) or ""))
        except ValueError as exc:
            raise ManifestParseError(str(exc), asset_name=asset.name) from exc
        package_version = str(package_json.get(P_VERSION) or "")

        updated_metadata = create_full_package_metadata(
            package_json,
            repository.name,
            blob.metrics.sha1_hash,
        )

        try:
            old_package_root = self._package_root_store.get_package_root(tx, repository, package_id)
            if old_package_root is None:
                return False

            old_sha = find_dist_value(old_package_root, package_version, SHASUM)
            new_sha = find_dist_value(updated_metadata, package_version, SHASUM)
            if old_sha == new_sha:
                return False

            new_package_root = merge_package_root(old_package_root, updated_metadata)
            self._maybe_update_integrity(asset, blob, package_version, old_package_root, new_package_root)

            self._package_root_store.put_package_root(tx, repository, package_id, None, new_package_root)
        except (OSError, PackageRootReadError) as exc:
            self._logger.error("Failed to update asset %s: %s", asset.name, exc, exc_info=True)
            return False

        self._logger.info(
            "Package root repaired: package: %s, version: %s, shasum: %s -> %s",
            package_id.id,
            package_version,
            old_sha,
            new_sha,
            extra={REPAIR_EVENT: PACKAGE_ROOT_REPAIRED, "repository": repository.name},
        )
        return True

    def _maybe_update_integrity(
        self,
        asset: Asset,
        blob: Blob,
        package_version: str,
        old_package_root: PackageRoot,
        new_package_root: PackageRoot,
    ) -> None:
        incorrect_integrity = find_dist_value(old_package_root, package_version, INTEGRITY)
        if not incorrect_integrity:
            return

        algorithm = incorrect_integrity.split("-", 1)[0]
        get_dist(new_package_root, package_version)[INTEGRITY] = self._recalculate_integrity(
            asset, blob, algorithm
        )
