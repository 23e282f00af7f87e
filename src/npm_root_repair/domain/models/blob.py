from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Callable


@dataclass(frozen=True, slots=True)
class BlobMetrics:
    sha1_hash: str
    size: int


@dataclass(frozen=True, slots=True)
class Blob:
    ref: str
    metrics: BlobMetrics
    opener: Callable[[], BinaryIO]

    def open_stream(self) -> BinaryIO:
        return self.opener()
