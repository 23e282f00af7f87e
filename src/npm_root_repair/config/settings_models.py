from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class UserSettings(BaseModel):
    log_level: str = Field(default="info")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)
    log_backup_count: int = Field(default=5, ge=0, le=100)
    repair_target_format: str = Field(default="npm", min_length=1)
    repair_batch_size: int = Field(default=100, ge=1, le=10_000)
    repair_cron_expression: str = Field(default="")
    repair_isolate_repository_failures: bool = Field(default=False)
    repair_lock_timeout_seconds: float = Field(default=0.0, ge=0)

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = str(value or "").strip().lower()
        if not normalized:
            return "info"
        if normalized not in {"debug", "info", "warn", "warning", "error"}:
            raise ValueError("LOG_LEVEL must be one of: debug, info, warn, error")
        return "warning" if normalized == "warn" else normalized

    @field_validator("repair_target_format")
    @classmethod
    def _normalize_format(cls, value: str) -> str:
        return str(value or "").strip().lower()

    @field_validator("repair_cron_expression")
    @classmethod
    def _validate_cron(cls, value: str) -> str:
        normalized = " ".join(str(value or "").split())
        if normalized and len(normalized.split(" ")) != 5:
            raise ValueError("REPAIR_CRON_EXPRESSION must have 5 fields")
        return normalized
