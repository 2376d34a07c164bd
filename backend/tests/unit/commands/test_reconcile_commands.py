"""Tests for the ``reconcile`` Typer commands."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from app.commands.reconcile_commands import app
from app.service_container import Services
from common.db.db import Db, DBConfig
from conftest import Seeder, ServicesForTest
from shared_db.db.init_db import create_tables
from shared_db.models.classes import ClassSection
from shared_db.models.enums import EnrollmentStatus, SectionStatus

runner = CliRunner()


def _with_db[T](url: str, action: Callable[[Db], Awaitable[T]]) -> T:
    """Run ``action`` against a short-lived engine in its own event loop, as the CLI itself does."""

    async def main() -> T:
        db = Db(DBConfig(url=url))
        await db.start()
        try:
            return await action(db)
        finally:
            await db.stop()

    return asyncio.run(main())


@pytest.fixture
def database_url(tmp_path) -> str:
    url = f"sqlite+aiosqlite:///{tmp_path / 'reconciliation.db'}"
    _with_db(url, create_tables)
    return url


@pytest.fixture
def cli_services(database_url: str, gateway: MagicMock) -> Generator[Services]:
    services = ServicesForTest(Db(DBConfig(url=database_url)), gateway)
    with (
        patch.object(Services, "instance", return_value=services),
        patch("app.commands.reconcile_commands.setup_logging"),
    ):
        yield services


def test_run_prints_report_and_exits_zero(cli_services: Services) -> None:
    result = runner.invoke(app, ["run"])

    assert result.exit_code == 0, result.output
    assert '"success": true' in result.output
    assert '"successCount": 6' in result.output
    assert '"failCount": 0' in result.output
    assert '"task": "assignment-reminder"' in result.output


def test_single_task_report(cli_services: Services) -> None:
    result = runner.invoke(app, ["run", "--task", "grace-period"])

    assert result.exit_code == 0, result.output
    assert '"successCount": 1' in result.output
    assert '"task": "grace-period"' in result.output
    assert '"task": "payment-expiry"' not in result.output


def test_failed_task_exits_one(cli_services: Services) -> None:
    with patch.object(cli_services.payment_dao, "list_expired_pending", AsyncMock(side_effect=RuntimeError("database unavailable"))):
        result = runner.invoke(app, ["run"])

    assert result.exit_code == 1, result.output
    assert '"success": false' in result.output
    assert '"failCount": 1' in result.output
    assert "database unavailable" in result.output


def test_unknown_task_exits_two(cli_services: Services, gateway: MagicMock) -> None:
    result = runner.invoke(app, ["run", "--task", "refund-sweep"])

    assert result.exit_code == 2
    assert "unknown_task" in result.output
    gateway.create_transaction.assert_not_awaited()


def test_recount_sections_reports_corrections(cli_services: Services, database_url: str) -> None:
    async def seed(db: Db) -> tuple[str, str]:
        seeder = Seeder(db)
        drifted = await seeder.section(label="A", current=3)
        consistent = await seeder.section(label="B", current=1)
        for section in (drifted, consistent):
            _ = await seeder.enrollment(await seeder.student(), section, status=EnrollmentStatus.ACTIVE)
        return drifted.id, consistent.id

    drifted_id, consistent_id = _with_db(database_url, seed)

    result = runner.invoke(app, ["recount-sections"])

    assert result.exit_code == 0, result.output
    assert "Recounted 2 sections, corrected 1" in result.output

    async def read(db: Db) -> list[ClassSection]:
        seeder = Seeder(db)
        return [await seeder.get(ClassSection, drifted_id), await seeder.get(ClassSection, consistent_id)]

    drifted, consistent = _with_db(database_url, read)
    assert (drifted.current_enrollments, drifted.status) == (1, SectionStatus.ACTIVE)
    assert consistent.current_enrollments == 1
