from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class RepositoryType(StrEnum):
    HOSTED = "hosted"
    PROXY = "proxy"
    GROUP = "group"


@dataclass(frozen=True, slots=True)
class Repository:
    name: str
    format: str
    type: RepositoryType

    def matches(self, target_format: str) -> bool:
        return self.format == target_format and self.type == RepositoryType.HOSTED
