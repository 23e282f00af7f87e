from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from npm_root_repair.domain.models.package_id import NpmPackageId
from npm_root_repair.domain.models.package_root import PackageRoot
from npm_root_repair.domain.models.repository import Repository
from npm_root_repair.domain.protocols.storage_tx_protocol import StorageTxProtocol


class PackageRootStoreProtocol(Protocol):
    def get_package_root(
        self, tx: StorageTxProtocol, repository: Repository, package_id: NpmPackageId
    ) -> PackageRoot | None: ...

    def put_package_root(
        self,
        tx: StorageTxProtocol,
        repository: Repository,
        package_id: NpmPackageId,
        expected_revision: str | None,
        package_root: Mapping[str, object],
    ) -> None: ...
