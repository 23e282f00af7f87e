from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import ClassVar


class AssetKind(StrEnum):
    PACKAGE_ROOT = "PACKAGE_ROOT"
    REPOSITORY_ROOT = "REPOSITORY_ROOT"
    TARBALL = "TARBALL"


@dataclass(frozen=True, slots=True)
class Asset:
    P_ASSET_KIND: ClassVar[str] = "asset_kind"

    id: int
    repository: str
    name: str
    blob_ref: str | None
    format_attributes: Mapping[str, object] = field(default_factory=dict)

    @property
    def kind(self) -> str:
        return str(self.format_attributes.get(self.P_ASSET_KIND) or "")

    @property
    def is_tarball(self) -> bool:
        return self.kind == AssetKind.TARBALL.value
