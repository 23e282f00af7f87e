from __future__ import annotations

from dataclasses import dataclass

from npm_root_repair.domain.models.batch_cursor import BatchCursor


@dataclass(frozen=True, slots=True)
class BatchResult:
    next_cursor: BatchCursor | None
    scanned: int
    repaired: int


@dataclass(frozen=True, slots=True)
class RepositoryRepairResult:
    repository: str
    batches: int
    scanned: int
    repaired: int
