"""Tests for the cron trigger endpoints."""

from __future__ import annotations

from collections.abc import Generator
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_cron_secret, get_task_runner
from app.main import app
from app.schemas.reconciliation import ReconciliationReport, TaskDetails, TaskResult
from common.core.app_error import Errors

SECRET = "s3cret-token"


@pytest.fixture
def task_runner() -> MagicMock:
    result = TaskResult(task="grace-period", success=True, message="Released 0/0 slots after grace period", details=TaskDetails())
    runner = MagicMock()
    runner.run = AsyncMock(
        return_value=ReconciliationReport(
            success=True,
            message="Daily reconciliation completed: 1 tasks succeeded, 0 failed",
            timestamp=datetime(2026, 3, 10, 3, 0, tzinfo=UTC),
            success_count=1,
            fail_count=0,
            results=[result],
        )
    )
    runner.run_task = AsyncMock(return_value=result)
    return runner


@pytest.fixture
def client(task_runner: MagicMock) -> Generator[TestClient]:
    app.dependency_overrides[get_cron_secret] = lambda: SECRET
    app.dependency_overrides[get_task_runner] = lambda: task_runner
    # No context manager: the lifespan (database startup) is not needed here
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_daily_run_with_valid_secret_returns_report(client: TestClient, task_runner: MagicMock) -> None:
    response = client.get("/api/v1/cron/daily", headers={"Authorization": f"Bearer {SECRET}"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["successCount"] == 1
    assert body["failCount"] == 0
    assert body["results"][0]["task"] == "grace-period"
    task_runner.run.assert_awaited_once()


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Bearer wrong"},
        {"Authorization": f"Basic {SECRET}"},
        {"Authorization": SECRET},
    ],
)
def test_bad_or_missing_secret_is_rejected_without_running(client: TestClient, task_runner: MagicMock, headers: dict[str, str]) -> None:
    response = client.get("/api/v1/cron/daily", headers=headers)

    assert response.status_code == 401
    assert response.json() == {"scope": "cron", "code": "unauthorized", "message": "Unauthorized"}
    task_runner.run.assert_not_awaited()


def test_empty_configured_secret_rejects_everything(client: TestClient, task_runner: MagicMock) -> None:
    app.dependency_overrides[get_cron_secret] = lambda: ""

    response = client.get("/api/v1/cron/daily", headers={"Authorization": "Bearer "})

    assert response.status_code == 401
    task_runner.run.assert_not_awaited()


def test_single_task_route_wraps_result_in_report(client: TestClient, task_runner: MagicMock) -> None:
    response = client.get("/api/v1/cron/grace-period", headers={"Authorization": f"Bearer {SECRET}"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Daily reconciliation completed: 1 tasks succeeded, 0 failed"
    assert [result["task"] for result in body["results"]] == ["grace-period"]
    assert task_runner.run_task.await_args.args[0] == "grace-period"


def test_unknown_task_returns_404(client: TestClient, task_runner: MagicMock) -> None:
    task_runner.run_task.side_effect = Errors.Cron.UNKNOWN_TASK.create(message="Unknown reconciliation task: nope")

    response = client.get("/api/v1/cron/nope", headers={"Authorization": f"Bearer {SECRET}"})

    assert response.status_code == 404
    assert response.json()["code"] == "unknown_task"


def test_health_needs_no_secret(client: TestClient) -> None:
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
