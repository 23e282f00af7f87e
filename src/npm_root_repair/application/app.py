from __future__ import annotations

import logging
import os
import signal
import time
from pathlib import Path
from types import FrameType
from typing import Callable, final

from npm_root_repair.application.gateways.npm_package_parser import NpmPackageParser
from npm_root_repair.application.repositories.filesystem_blob_store import FilesystemBlobStore
from npm_root_repair.application.repositories.sqlite_batch_runner import SqliteBatchRunner
from npm_root_repair.application.repositories.sqlite_package_root_store import (
    SqlitePackageRootStore,
)
from npm_root_repair.application.repositories.sqlite_repository_registry import (
    SqliteRepositoryRegistry,
)
from npm_root_repair.application.repositories.sqlite_unit_of_work import SqliteUnitOfWork
from npm_root_repair.application.scheduler.apscheduler_runner import APSchedulerRunner
from npm_root_repair.config.logging_setup import configure_logging
from npm_root_repair.config.settings_loader import SettingsLoader
from npm_root_repair.domain.models.app_config import AppConfig
from npm_root_repair.domain.protocols.scheduler_protocol import SchedulerProtocol
from npm_root_repair.domain.workflows.load_asset_batch import LoadAssetBatch
from npm_root_repair.domain.workflows.recalculate_integrity import RecalculateIntegrity
from npm_root_repair.domain.workflows.reconcile_package_root import ReconcilePackageRoot
from npm_root_repair.domain.workflows.repair_package_roots import RepairPackageRoots


@final
class RepairApp:
    def __init__(
        self,
        config: AppConfig,
        scheduler_factory: Callable[[], SchedulerProtocol] = APSchedulerRunner,
    ) -> None:
        self._config = config
        self._scheduler_factory = scheduler_factory
        self._scheduler: SchedulerProtocol | None = None
        self._should_stop = False
        self._log = logging.getLogger("npm_root_repair.repair")
        self._blob_store = FilesystemBlobStore(config.paths.blobs_dir)

    @classmethod
    def run_from_env(cls) -> int:
        settings_file = os.getenv("SETTINGS_FILE")
        config = SettingsLoader.load(Path(settings_file) if settings_file else None)
        configure_logging(config.user, config.paths)
        return cls(config).run()

    def _uow_factory(self) -> SqliteUnitOfWork:
        return SqliteUnitOfWork(self._config.paths.storage_db_path, self._blob_store)

    @staticmethod
    def _read_init_sql(path: Path) -> str:
        if not path.exists():
            raise FileNotFoundError(f"Storage schema not found: {path}")
        sql = path.read_text("utf-8").strip()
        if not sql:
            raise ValueError(f"Storage schema file is empty: {path}")
        return sql

    def _initialize_layout_and_schema(self) -> None:
        self._config.paths.data_dir.mkdir(parents=True, exist_ok=True)
        self._config.paths.logs_dir.mkdir(parents=True, exist_ok=True)
        self._blob_store.ensure_layout()
        init_sql = self._read_init_sql(self._config.paths.storage_schema_path)
        with self._uow_factory() as uow:
            uow.init_schema(init_sql)
            uow.commit()

    def build_repair(self) -> RepairPackageRoots:
        user = self._config.user
        reconcile = ReconcilePackageRoot(
            package_parser=NpmPackageParser(self._log),
            package_root_store=SqlitePackageRootStore(),
            recalculate_integrity=RecalculateIntegrity(self._log),
            logger=self._log,
        )
        return RepairPackageRoots(
            repository_registry=SqliteRepositoryRegistry(self._config.paths.storage_db_path),
            batch_runner=SqliteBatchRunner(self._uow_factory),
            load_asset_batch=LoadAssetBatch(user.repair_batch_size),
            reconcile_package_root=reconcile,
            target_format=user.repair_target_format,
            lock_path=self._config.paths.lock_path,
            lock_timeout_seconds=user.repair_lock_timeout_seconds,
            logger=self._log,
            isolate_repository_failures=user.repair_isolate_repository_failures,
        )

    def run_once(self) -> int:
        try:
            self._initialize_layout_and_schema()
            self.build_repair().repair()
        except Exception:
            self._log.exception("Repair pass failed")
            return 1
        return 0

    def start(self) -> None:
        cron_expr = self._config.user.repair_cron_expression
        repair = self.build_repair()
        scheduler = self._scheduler_factory()
        scheduler.schedule_cron("repair-package-roots", cron_expr, repair.repair)
        scheduler.start()
        self._scheduler = scheduler
        self._log.info("Repair scheduled with cron: '%s'", cron_expr)

    def run(self) -> int:
        exit_code = self.run_once()
        if not self._config.user.repair_cron_expression:
            return exit_code

        self._install_signal_handlers()
        self.start()
        try:
            while not self._should_stop:
                time.sleep(0.5)
        finally:
            self.shutdown()
        return exit_code

    def shutdown(self) -> None:
        scheduler = self._scheduler
        if scheduler is None:
            return
        self._scheduler = None
        scheduler.shutdown()
        self._log.info("Repair scheduler stopped")

    def _install_signal_handlers(self) -> None:
        def _stop_handler(_signum: int, _frame: FrameType | None) -> None:
            self._should_stop = True

        _ = signal.signal(signal.SIGTERM, _stop_handler)
        _ = signal.signal(signal.SIGINT, _stop_handler)


def main() -> int:
    return RepairApp.run_from_env()
