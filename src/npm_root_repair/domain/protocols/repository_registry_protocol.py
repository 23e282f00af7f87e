from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from npm_root_repair.domain.models.repository import Repository


class RepositoryRegistryProtocol(Protocol):
    def browse(self) -> Iterable[Repository]: ...
