from __future__ import annotations

from datetime import UTC, datetime

from common.core.app_error import Errors
from common.core.config_service import to_async_database_url, to_sync_database_url
from common.utils.utils import human_readable_duration, local_day_bounds


def test_local_day_bounds_in_jakarta() -> None:
    start, end = local_day_bounds(datetime(2026, 3, 10, 3, 0, tzinfo=UTC), "Asia/Jakarta")

    assert start == datetime(2026, 3, 9, 17, 0, tzinfo=UTC)
    assert end == datetime(2026, 3, 10, 17, 0, tzinfo=UTC)


def test_local_day_bounds_across_dst_change() -> None:
    # Europe/Berlin springs forward on 2026-03-29, a 23 hour day
    start, end = local_day_bounds(datetime(2026, 3, 29, 12, 0, tzinfo=UTC), "Europe/Berlin")

    assert start == datetime(2026, 3, 28, 23, 0, tzinfo=UTC)
    assert end == datetime(2026, 3, 29, 22, 0, tzinfo=UTC)


def test_database_urls_use_async_drivers() -> None:
    assert to_async_database_url("postgresql://u:p@db:5432/lms") == "postgresql+asyncpg://u:p@db:5432/lms"
    assert to_async_database_url("postgres://u:p@db/lms") == "postgresql+asyncpg://u:p@db/lms"
    assert to_async_database_url("sqlite:///./lms.db") == "sqlite+aiosqlite:///./lms.db"
    assert to_async_database_url("postgresql+asyncpg://db/lms") == "postgresql+asyncpg://db/lms"
    assert to_sync_database_url("postgresql+asyncpg://db/lms") == "postgresql://db/lms"


def test_app_errors_carry_scope_code_and_status() -> None:
    error = Errors.Reconciliation.MISSING_RELATION.create(details={"enrollment_id": "e1"})

    assert error.details.to_dict(mode="json") == {
        "scope": "reconciliation",
        "code": "missing_relation",
        "message": "Referenced record does not exist",
        "details": {"enrollment_id": "e1"},
    }
    assert error.http_status == 500
    assert Errors.Reconciliation.MISSING_RELATION.is_(error)
    assert not Errors.Cron.UNKNOWN_TASK.is_(error)


def test_human_readable_duration() -> None:
    assert human_readable_duration(3725.5) == "1h 2m 5s 500ms"
    assert human_readable_duration(0) == "0s"
