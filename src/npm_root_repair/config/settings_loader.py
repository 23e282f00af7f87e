from __future__ import annotations

from pathlib import Path
from typing import ClassVar, final

from npm_root_repair.config.settings_models import UserSettings
from npm_root_repair.domain.models.app_config import AppConfig, RuntimePaths


@final
class SettingsLoader:
    _KEY_MAP: ClassVar[dict[str, str]] = {
        "LOG_LEVEL": "log_level",
        "LOG_MAX_BYTES": "log_max_bytes",
        "LOG_BACKUP_COUNT": "log_backup_count",
        "REPAIR_TARGET_FORMAT": "repair_target_format",
        "REPAIR_BATCH_SIZE": "repair_batch_size",
        "REPAIR_CRON_EXPRESSION": "repair_cron_expression",
        "REPAIR_ISOLATE_REPOSITORY_FAILURES": "repair_isolate_repository_failures",
        "REPAIR_LOCK_TIMEOUT_SECONDS": "repair_lock_timeout_seconds",
    }
    _INT_KEYS: ClassVar[frozenset[str]] = frozenset(
        {"repair_batch_size", "log_max_bytes", "log_backup_count"}
    )
    _FLOAT_KEYS: ClassVar[frozenset[str]] = frozenset({"repair_lock_timeout_seconds"})
    _BOOL_KEYS: ClassVar[frozenset[str]] = frozenset({"repair_isolate_repository_failures"})

    @staticmethod
    def _parse_key_value_file(path: Path) -> dict[str, str]:
        data: dict[str, str] = {}
        if not path.exists():
            return data

        for raw_line in path.read_text("utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[7:].strip()
            if "=" not in line:
                continue
            key, value = line.split("=", 1)
            data[key.strip()] = value.strip().strip('"').strip("'")
        return data

    @staticmethod
    def _parse_bool(value: str) -> bool:
        return str(value or "").strip().lower() in {"1", "true", "yes", "on"}

    @classmethod
    def _to_user_settings(cls, raw: dict[str, str]) -> UserSettings:
        mapped: dict[str, object] = {}
        for key, value in raw.items():
            target = cls._KEY_MAP.get(key)
            if not target:
                continue
            text = str(value or "").strip()
            if not text:
                continue
            if target in cls._INT_KEYS:
                try:
                    mapped[target] = int(text)
                except ValueError:
                    continue
                continue
            if target in cls._FLOAT_KEYS:
                try:
                    mapped[target] = float(text)
                except ValueError:
                    continue
                continue
            if target in cls._BOOL_KEYS:
                mapped[target] = cls._parse_bool(text)
                continue
            mapped[target] = text

        return UserSettings.model_validate(mapped)

    @staticmethod
    def _build_paths(app_root: Path, settings_path: Path) -> RuntimePaths:
        data_dir = app_root / "data"
        init_dir = app_root / "init"
        logs_dir = data_dir / "logs"
        return RuntimePaths(
            app_root=app_root,
            init_dir=init_dir,
            data_dir=data_dir,
            blobs_dir=data_dir / "blobs",
            logs_dir=logs_dir,
            storage_db_path=data_dir / "storage.db",
            storage_schema_path=init_dir / "storage_db.sql",
            lock_path=data_dir / "repair.lock",
            error_log_path=logs_dir / "repair_errors.log",
            audit_log_path=logs_dir / "repaired_roots.log",
            settings_path=settings_path,
        )

    @classmethod
    def load(cls, settings_path: Path | None = None, app_root: Path | None = None) -> AppConfig:
        root = app_root or Path.cwd()
        resolved_settings = settings_path or root / "configs" / "settings.ini"
        raw = cls._parse_key_value_file(resolved_settings)
        user = cls._to_user_settings(raw)
        paths = cls._build_paths(root, resolved_settings)
        return AppConfig(user=user, paths=paths)
