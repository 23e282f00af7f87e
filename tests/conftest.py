import sys
from pathlib import Path

root = Path(__file__).resolve().parents[1]
src = root / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

import hashlib
import io
import json
import shutil
import sqlite3
import tarfile
from typing import Callable

import pytest

SCHEMA_PATH = root / "init" / "storage_db.sql"


def build_npm_tarball(
    package_json: dict[str, object] | None,
    top_dir: str = "package",
    extra_files: dict[str, bytes] | None = None,
) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        files: dict[str, bytes] = dict(extra_files or {})
        if package_json is not None:
            files[f"{top_dir}/package.json"] = json.dumps(package_json).encode("utf-8")
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            archive.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


@pytest.fixture()
def temp_workspace(tmp_path: Path) -> Path:
    for name in ("configs", "init", "data"):
        (tmp_path / name).mkdir(parents=True, exist_ok=True)
    return tmp_path


@pytest.fixture()
def npm_tarball() -> Callable[..., bytes]:
    return build_npm_tarball


class StorageSeeder:
    """Writes fixture rows straight into a workspace storage database."""

    def __init__(self, db_path: Path, blobs_dir: Path) -> None:
        self.db_path = db_path
        self.blobs_dir = blobs_dir
        db_path.parent.mkdir(parents=True, exist_ok=True)
        with sqlite3.connect(db_path) as conn:
            _ = conn.executescript(SCHEMA_PATH.read_text("utf-8"))

    def _execute(self, sql: str, params: tuple[object, ...]) -> int:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(sql, params)
            return int(cursor.lastrowid or 0)

    def add_repository(self, name: str, format_: str = "npm", type_: str = "hosted") -> None:
        _ = self._execute(
            "INSERT INTO repositories (name, format, type) VALUES (?, ?, ?)",
            (name, format_, type_),
        )

    def add_blob(self, ref: str, content: bytes, sha1: str | None = None) -> str:
        recorded = sha1 if sha1 is not None else hashlib.sha1(content).hexdigest()
        path = self.blobs_dir / ref[:2] / ref
        path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_bytes(content)
        _ = self._execute(
            "INSERT INTO blobs (ref, sha1, size) VALUES (?, ?, ?)",
            (ref, recorded, len(content)),
        )
        return recorded

    def add_asset(
        self, repository: str, name: str, blob_ref: str | None, kind: str = "TARBALL"
    ) -> int:
        return self._execute(
            "INSERT INTO assets (repository, name, blob_ref, attributes) VALUES (?, ?, ?, ?)",
            (repository, name, blob_ref, json.dumps({"asset_kind": kind})),
        )

    def put_root(self, repository: str, package_id: str, document: dict[str, object]) -> None:
        self.put_raw_root(repository, package_id, json.dumps(document))

    def put_raw_root(self, repository: str, package_id: str, document_text: str) -> None:
        _ = self._execute(
            "INSERT INTO package_roots (repository, package_id, revision, document, updated_at) "
            "VALUES (?, ?, 1, ?, '2024-01-01T00:00:00+00:00')",
            (repository, package_id, document_text),
        )

    def get_root(self, repository: str, package_id: str) -> tuple[int, dict[str, object]] | None:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT revision, document FROM package_roots WHERE repository = ? AND package_id = ?",
                (repository, package_id),
            ).fetchone()
        if row is None:
            return None
        return int(row[0]), json.loads(row[1])


@pytest.fixture()
def storage(temp_workspace: Path) -> StorageSeeder:
    _ = shutil.copyfile(SCHEMA_PATH, temp_workspace / "init" / "storage_db.sql")
    return StorageSeeder(temp_workspace / "data" / "storage.db", temp_workspace / "data" / "blobs")
