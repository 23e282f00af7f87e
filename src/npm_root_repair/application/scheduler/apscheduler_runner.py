# pyright: reportMissingTypeStubs=false, reportUnknownMemberType=false

from __future__ import annotations

from typing import Callable, final

from typing_extensions import override

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from npm_root_repair.domain.protocols.scheduler_protocol import SchedulerProtocol


@final
class APSchedulerRunner(SchedulerProtocol):
    def __init__(self, misfire_grace_seconds: int = 300) -> None:
        self._scheduler = BackgroundScheduler()
        self._misfire_grace_seconds = max(1, int(misfire_grace_seconds))

    @staticmethod
    def build_trigger(cron_expression: str) -> CronTrigger:
        if len(cron_expression.split()) != 5:
            raise ValueError("Cron expression must have 5 fields")
        return CronTrigger.from_crontab(cron_expression)

    @override
    def schedule_cron(
        self, job_id: str, cron_expression: str, func: Callable[[], object]
    ) -> None:
        # A repair pass must never overlap with itself; late runs collapse into one.
        _ = self._scheduler.add_job(
            func,
            self.build_trigger(cron_expression),
            id=job_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self._misfire_grace_seconds,
        )

    @override
    def start(self) -> None:
        self._scheduler.start()

    @override
    def shutdown(self) -> None:
        self._scheduler.shutdown(wait=True)
