from __future__ import annotations

from dataclasses import dataclass
from typing_extensions import override


@dataclass(frozen=True, slots=True)
class NpmPackageId:
    scope: str | None
    name: str

    def __post_init__(self) -> None:
        if self.scope is not None:
            if not self.scope:
                raise ValueError("Scope cannot be empty string")
            if self.scope.startswith((".", "_")):
                raise ValueError(f"Scope starts with '.' or '_': {self.scope!r}")
        if not self.name:
            raise ValueError("Name cannot be empty string")
        if self.name.startswith((".", "_")):
            raise ValueError(f"Name starts with '.' or '_': {self.name!r}")

    @classmethod
    def parse(cls, raw: str) -> "NpmPackageId":
        text = str(raw or "").strip()
        slash = text.find("/")
        if text.startswith("@") and slash > -1:
            return cls(scope=text[1:slash], name=text[slash + 1 :])
        return cls(scope=None, name=text)

    @property
    def id(self) -> str:
        if self.scope is None:
            return self.name
        return f"@{self.scope}/{self.name}"

    def tarball_name(self, version: str) -> str:
        return f"{self.name}-{version}.tgz"

    def repository_path(self, version: str) -> str:
        return f"{self.id}/-/{self.tarball_name(version)}"

    @override
    def __str__(self) -> str:
        return self.id
