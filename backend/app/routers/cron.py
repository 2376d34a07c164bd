"""Scheduler-facing trigger endpoints."""

from fastapi import APIRouter, Depends

from app.dependencies import get_task_runner, verify_cron_secret
from app.schemas.reconciliation import ReconciliationReport
from app.services.reconciliation import TaskRunner
from common.core.request_context import RequestContext
from common.utils.utils import get_logger, get_now

logger = get_logger()

cron_router = APIRouter(prefix="/cron", dependencies=[Depends(verify_cron_secret)])


@cron_router.get("/daily")
async def run_daily(task_runner: TaskRunner = Depends(get_task_runner)) -> ReconciliationReport:
    """Run every reconciliation task in order."""
    with RequestContext.context(trigger="cron"):
        return await task_runner.run(get_now())


@cron_router.get("/{task_name}")
async def run_single_task(task_name: str, task_runner: TaskRunner = Depends(get_task_runner)) -> ReconciliationReport:
    """Run one reconciliation task by name, e.g. ``grace-period``."""
    now = get_now()
    with RequestContext.context(trigger="cron"):
        result = await task_runner.run_task(task_name, now)
    return TaskRunner.build_report([result], now)
