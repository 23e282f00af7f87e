from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol

from npm_root_repair.domain.models.asset import Asset
from npm_root_repair.domain.models.blob import Blob
from npm_root_repair.domain.models.repository import Repository


class StorageTxProtocol(Protocol):
    def find_assets(
        self,
        where: str,
        parameters: Mapping[str, object],
        repositories: Sequence[Repository],
        suffix: str,
    ) -> list[Asset]: ...

    def get_blob(self, blob_ref: str) -> Blob | None: ...
