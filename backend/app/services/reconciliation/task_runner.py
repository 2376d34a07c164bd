"""Runs the daily reconciliation tasks in a fixed order and aggregates their results."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from app.schemas.reconciliation import ReconciliationReport, TaskResult
from app.services.reconciliation.base import ReconciliationTask
from common.core.app_error import Errors
from common.core.request_context import RequestContext
from common.ids import RunId, new_id
from common.utils.utils import get_logger, get_now, human_readable_duration

logger = get_logger()


class TaskRunner:
    """A task that raises is recorded as failed; the remaining tasks still run. Nothing re-raises past ``run``."""

    def __init__(self, tasks: Sequence[ReconciliationTask[Any]]) -> None:
        self._tasks = list(tasks)

    @property
    def task_names(self) -> list[str]:
        return [task.name for task in self._tasks]

    async def run(self, now: datetime | None = None) -> ReconciliationReport:
        now = now or get_now()
        run_id = RunId(new_id())
        with RequestContext.context(run_id=run_id):
            logger.info("Daily reconciliation started", now=now, tasks=self.task_names)
            results = [await self._run_isolated(task, now) for task in self._tasks]
            report = self.build_report(results, now)
            log = logger.info if report.success else logger.error
            log(
                "Daily reconciliation finished",
                success_count=report.success_count,
                fail_count=report.fail_count,
                failed_tasks=[result.task for result in results if not result.success],
            )
        return report

    async def run_task(self, name: str, now: datetime | None = None) -> TaskResult:
        task = next((task for task in self._tasks if task.name == name), None)
        if task is None:
            raise Errors.Cron.UNKNOWN_TASK.create(message=f"Unknown reconciliation task: {name}", details={"available": self.task_names})
        now = now or get_now()
        with RequestContext.context(run_id=RunId(new_id())):
            return await self._run_isolated(task, now)

    @staticmethod
    def build_report(results: list[TaskResult], now: datetime) -> ReconciliationReport:
        success_count = sum(1 for result in results if result.success)
        fail_count = len(results) - success_count
        return ReconciliationReport(
            success=fail_count == 0,
            message=f"Daily reconciliation completed: {success_count} tasks succeeded, {fail_count} failed",
            timestamp=now,
            success_count=success_count,
            fail_count=fail_count,
            results=results,
        )

    async def _run_isolated(self, task: ReconciliationTask[Any], now: datetime) -> TaskResult:
        with RequestContext.context(task=task.name):
            started = get_now()
            try:
                result = await task.run(now)
            except Exception as e:
                logger.exception("Reconciliation task failed", task=task.name, exc_info=e)
                return TaskResult(task=task.name, success=False, message=str(e) or type(e).__name__)
            logger.info(
                "Reconciliation task completed",
                task=task.name,
                message=result.message,
                duration=human_readable_duration((get_now() - started).total_seconds()),
            )
            return result
