from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import cast, final

from npm_root_repair.domain.models.repository import Repository, RepositoryType


@final
class SqliteRepositoryRegistry:
    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path

    def browse(self) -> list[Repository]:
        if not self._db_path.exists():
            return []
        conn = sqlite3.connect(str(self._db_path))
        try:
            rows = cast(
                list[tuple[object, ...]],
                conn.execute("SELECT name, format, type FROM repositories ORDER BY name").fetchall(),
            )
        finally:
            conn.close()

        repositories: list[Repository] = []
        for name, format_, type_ in rows:
            try:
                repository_type = RepositoryType(str(type_).strip().lower())
            except ValueError:
                continue
            repositories.append(
                Repository(name=str(name), format=str(format_).strip().lower(), type=repository_type)
            )
        return repositories
