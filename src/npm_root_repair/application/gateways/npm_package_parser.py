from __future__ import annotations

import json
import logging
import tarfile
from typing import BinaryIO, Callable, ClassVar, cast, final

from npm_root_repair.domain.errors import ManifestParseError
from npm_root_repair.domain.models.package_root import P_NAME, P_VERSION


@final
class NpmPackageParser:
    """Extract ``package.json`` from a gzipped npm tarball.

    npm packs every file under a single top-level directory (usually
    ``package/``), so the manifest is the only ``<top>/package.json`` entry.
    """

    _MANIFEST_NAME: ClassVar[str] = "package.json"
    _MAX_MANIFEST_BYTES: ClassVar[int] = 16 * 1024 * 1024

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    @classmethod
    def is_package_json(cls, entry: tarfile.TarInfo) -> bool:
        if not entry.isfile():
            return False
        parts = entry.name.removeprefix("./").split("/")
        return len(parts) == 2 and parts[1] == cls._MANIFEST_NAME

    def parse_package_json(self, supplier: Callable[[], BinaryIO]) -> dict[str, object]:
        try:
            with supplier() as stream:
                with tarfile.open(fileobj=stream, mode="r:gz") as archive:
                    raw = self._read_manifest(archive)
        except (OSError, tarfile.TarError, EOFError) as exc:
            raise ManifestParseError(f"Unreadable npm tarball: {exc}") from exc

        if raw is None:
            raise ManifestParseError("npm tarball does not contain a package.json")

        try:
            parsed = cast(object, json.loads(raw.decode("utf-8-sig")))
        except (UnicodeDecodeError, ValueError) as exc:
            raise ManifestParseError(f"Invalid package.json: {exc}") from exc

        if not isinstance(parsed, dict):
            raise ManifestParseError("package.json must be a JSON object")

        package_json = {str(key): value for key, value in cast(dict[object, object], parsed).items()}
        for required in (P_NAME, P_VERSION):
            value = package_json.get(required)
            if not isinstance(value, str) or not value.strip():
                raise ManifestParseError(f"package.json is missing required field {required!r}")
        self._logger.debug(
            "Parsed package.json: name: %s, version: %s",
            package_json[P_NAME],
            package_json[P_VERSION],
        )
        return package_json

    def _read_manifest(self, archive: tarfile.TarFile) -> bytes | None:
        for entry in archive:
            if not self.is_package_json(entry):
                continue
            if entry.size > self._MAX_MANIFEST_BYTES:
                raise ManifestParseError(f"package.json is too large: {entry.size} bytes")
            extracted = archive.extractfile(entry)
            if extracted is None:
                return None
            with extracted:
                return extracted.read()
        return None
