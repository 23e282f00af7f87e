from __future__ import annotations

import sqlite3
from typing import Callable, TypeVar, final

from npm_root_repair.application.repositories.sqlite_unit_of_work import SqliteUnitOfWork
from npm_root_repair.domain.errors import TransactionError
from npm_root_repair.domain.models.repository import Repository
from npm_root_repair.domain.protocols.storage_tx_protocol import StorageTxProtocol

T = TypeVar("T")


@final
class SqliteBatchRunner:
    """Run one unit of work per call; commit on success, roll back on any exception."""

    def __init__(self, uow_factory: Callable[[], SqliteUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def run(self, repository: Repository, work: Callable[[StorageTxProtocol], T]) -> T:
        try:
            with self._uow_factory() as uow:
                result = work(uow.tx)
                uow.commit()
        except sqlite3.Error as exc:
            raise TransactionError(
                f"Transaction failed for repository {repository.name}: {exc}",
                repository=repository.name,
            ) from exc
        return result
