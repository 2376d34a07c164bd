import asyncio

import typer

from app.schemas.reconciliation import ReconciliationReport
from app.service_container import Services
from common.core.app_error import AppException, Errors
from common.logging import setup_logging
from common.utils.utils import get_logger, get_now

logger = get_logger(__name__)

app = typer.Typer(help="Daily reconciliation commands")


@app.callback()
def _configure() -> None:
    setup_logging()


async def _run(task: str | None) -> ReconciliationReport:
    services = Services.instance()
    await services.start()
    try:
        now = get_now()
        if task is None:
            return await services.task_runner.run(now)
        result = await services.task_runner.run_task(task, now)
        return services.task_runner.build_report([result], now)
    finally:
        await services.stop()


async def _recount_sections() -> tuple[int, int]:
    services = Services.instance()
    await services.start()
    corrected = 0
    try:
        async with services.db.new_session() as db:
            section_ids = await services.section_dao.list_ids(db)
            for section_id in section_ids:
                before = await services.section_dao.get(db, section_id)
                after = await services.section_dao.recount_enrollments(db, section_id)
                await db.commit()
                if before is not None and after is not None and (before.current_enrollments, before.status) != (
                    after.current_enrollments,
                    after.status,
                ):
                    corrected += 1
        return len(section_ids), corrected
    finally:
        await services.stop()


@app.command()
def run(task: str | None = typer.Option(None, "--task", "-t", help="Run a single task, e.g. grace-period")) -> None:
    """Run the daily reconciliation (or one task) and print the JSON report."""
    try:
        report = asyncio.run(_run(task))
    except AppException as e:
        if Errors.Cron.UNKNOWN_TASK.is_(e):
            typer.echo(e.details.to_json(pretty=True), err=True)
            raise typer.Exit(code=2) from e
        raise

    typer.echo(report.to_json(pretty=True))
    if not report.success:
        raise typer.Exit(code=1)


@app.command("recount-sections")
def recount_sections() -> None:
    """Recompute every section's enrollment counter from its enrollments."""
    total, corrected = asyncio.run(_recount_sections())
    logger.info("Section recount finished", sections=total, corrected=corrected)
    typer.echo(f"Recounted {total} sections, corrected {corrected}")


if __name__ == "__main__":
    app()
