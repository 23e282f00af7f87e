from __future__ import annotations

from typing import Callable, Protocol, TypeVar

from npm_root_repair.domain.models.repository import Repository
from npm_root_repair.domain.protocols.storage_tx_protocol import StorageTxProtocol

T = TypeVar("T")


class TransactionalBatchRunnerProtocol(Protocol):
    def run(self, repository: Repository, work: Callable[[StorageTxProtocol], T]) -> T: ...
