from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from npm_root_repair.config.settings_models import UserSettings


@dataclass(frozen=True)
class RuntimePaths:
    app_root: Path
    init_dir: Path
    data_dir: Path
    blobs_dir: Path
    logs_dir: Path
    storage_db_path: Path
    storage_schema_path: Path
    lock_path: Path
    error_log_path: Path
    audit_log_path: Path
    settings_path: Path


@dataclass(frozen=True)
class AppConfig:
    user: UserSettings
    paths: RuntimePaths
