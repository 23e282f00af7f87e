from __future__ import annotations

from typing import final

from npm_root_repair.domain.models.asset import Asset
from npm_root_repair.domain.models.batch_cursor import BatchCursor
from npm_root_repair.domain.models.repository import Repository
from npm_root_repair.domain.protocols.storage_tx_protocol import StorageTxProtocol

ASSETS_WHERE = "id > :cursor"
ASSETS_SUFFIX = "ORDER BY id LIMIT :limit"
DEFAULT_BATCH_SIZE = 100


@final
class LoadAssetBatch:
    def __init__(self, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        self._batch_size = max(1, int(batch_size))

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def __call__(
        self, tx: StorageTxProtocol, repository: Repository, cursor: BatchCursor
    ) -> list[Asset]:
        parameters = {"cursor": cursor.value, "limit": self._batch_size}
        return tx.find_assets(ASSETS_WHERE, parameters, [repository], ASSETS_SUFFIX)
