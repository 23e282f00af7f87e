from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, final

from npm_root_repair.domain.models.blob import Blob, BlobMetrics


@final
class FilesystemBlobStore:
    def __init__(self, blobs_dir: Path) -> None:
        self._blobs_dir = blobs_dir

    def ensure_layout(self) -> None:
        self._blobs_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, blob_ref: str) -> Path:
        ref = str(blob_ref or "").strip()
        safe_ref = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in ref)
        return self._blobs_dir / safe_ref[:2] / safe_ref

    def write(self, blob_ref: str, content: bytes) -> Path:
        path = self.path_for(blob_ref)
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_bytes(content)
        return path

    def get(self, blob_ref: str, metrics: BlobMetrics) -> Blob | None:
        path = self.path_for(blob_ref)
        if not path.is_file():
            return None

        def _open() -> BinaryIO:
            return path.open("rb")

        return Blob(ref=blob_ref, metrics=metrics, opener=_open)
