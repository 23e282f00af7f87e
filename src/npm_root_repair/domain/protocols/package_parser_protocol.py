from __future__ import annotations

from typing import BinaryIO, Callable, Protocol


class PackageParserProtocol(Protocol):
    def parse_package_json(self, supplier: Callable[[], BinaryIO]) -> dict[str, object]: ...
