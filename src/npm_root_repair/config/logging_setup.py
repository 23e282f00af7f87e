from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing_extensions import override

from npm_root_repair.config.settings_models import UserSettings
from npm_root_repair.domain.models.app_config import RuntimePaths
from npm_root_repair.domain.workflows.reconcile_package_root import (
    PACKAGE_ROOT_REPAIRED,
    REPAIR_EVENT,
)

_SCHEDULER_LOGGERS = ("apscheduler.scheduler", "apscheduler.executors.default")
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_AUDIT_FORMAT = "%(asctime)s %(repository)s %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _SchedulerChatterFilter(logging.Filter):
    """Job add/run notices from APScheduler are debug noise for a repair host."""

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno == logging.INFO:
            record.levelno = logging.DEBUG
            record.levelname = logging.getLevelName(logging.DEBUG)
        return True


class _RepairAuditFilter(logging.Filter):
    """Pass only records tagged as a package-root rewrite."""

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, REPAIR_EVENT, None) != PACKAGE_ROOT_REPAIRED:
            return False
        if not hasattr(record, "repository"):
            record.repository = "-"
        return True


def resolve_level(level: str) -> int:
    resolved = logging.getLevelName(str(level or "info").upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _rotating_file(path: Path, user: UserSettings, level: int, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=user.log_max_bytes,
        backupCount=user.log_backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=_DATE_FORMAT))
    handler.setLevel(level)
    return handler


def configure_logging(user: UserSettings, paths: RuntimePaths) -> None:
    """Console at LOG_LEVEL, failures to the error log, rewrites to the audit log."""
    paths.logs_dir.mkdir(parents=True, exist_ok=True)
    console_level = resolve_level(user.log_level)

    root = logging.getLogger()
    root.setLevel(min(console_level, logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT))
    console.setLevel(console_level)

    errors = _rotating_file(paths.error_log_path, user, logging.WARNING, _LOG_FORMAT)

    audit = _rotating_file(paths.audit_log_path, user, logging.INFO, _AUDIT_FORMAT)
    audit.addFilter(_RepairAuditFilter())

    root.addHandler(console)
    root.addHandler(errors)
    root.addHandler(audit)

    for logger_name in _SCHEDULER_LOGGERS:
        logger = logging.getLogger(logger_name)
        logger.filters.clear()
        logger.addFilter(_SchedulerChatterFilter())
