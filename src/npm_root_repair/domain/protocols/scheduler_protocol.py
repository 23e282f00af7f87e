from __future__ import annotations

from typing import Callable, Protocol


class SchedulerProtocol(Protocol):
    def schedule_cron(
        self, job_id: str, cron_expression: str, func: Callable[[], object]
    ) -> None: ...

    def start(self) -> None: ...

    def shutdown(self) -> None: ...
