"""Unit tests for the meeting and assignment reminder tasks."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from shared_db.models.enums import AssignmentStatus, EnrollmentStatus, MeetingStatus, NotificationType
from shared_db.models.notification import Notification


async def _active_student(seed, section):
    student = await seed.student()
    _ = await seed.enrollment(student, section, status=EnrollmentStatus.ACTIVE, expiry_date=datetime(2026, 4, 1, tzinfo=UTC))
    return student


@pytest.mark.asyncio
async def test_meeting_today_reminds_active_students_once(services, seed, now) -> None:
    section = await seed.section()
    active = await _active_student(seed, section)
    lapsed = await seed.student()
    _ = await seed.enrollment(lapsed, section, status=EnrollmentStatus.EXPIRED, grace_expiry_date=now + timedelta(days=3))
    # 07:00 UTC is 14:00 in Jakarta
    _ = await seed.meeting(section, scheduled_at=datetime(2026, 3, 10, 7, 0, tzinfo=UTC), title="Algebra Basics")

    first = await services.task_runner.run_task("meeting-reminder", now)
    second = await services.task_runner.run_task("meeting-reminder", now + timedelta(hours=2))

    assert first.message == "Sent 1 meeting reminders for 1 meetings today"
    assert second.details is not None
    assert (second.details.processed, second.details.skipped) == (0, 1)

    notifications = await seed.notifications(active.user_id)
    assert len(notifications) == 1
    reminder = notifications[0]
    assert reminder.title == "Meeting Today"
    assert reminder.type == NotificationType.CLASS
    assert "Algebra Basics" in reminder.message
    assert "14:00" in reminder.message
    assert reminder.link == "https://meet.example.com/algebra"
    assert reminder.dedup_key is not None
    assert await seed.notifications(lapsed.user_id) == []


@pytest.mark.asyncio
async def test_today_follows_the_business_timezone(services, seed, now) -> None:
    section = await seed.section()
    student = await _active_student(seed, section)
    # 00:30 on the 10th in Jakarta
    _ = await seed.meeting(section, scheduled_at=datetime(2026, 3, 9, 17, 30, tzinfo=UTC), title="Early Session")
    # 01:00 on the 11th in Jakarta
    _ = await seed.meeting(section, scheduled_at=datetime(2026, 3, 10, 18, 0, tzinfo=UTC), title="Tomorrow Session")
    _ = await seed.meeting(section, scheduled_at=datetime(2026, 3, 10, 9, 0, tzinfo=UTC), title="Cancelled", status=MeetingStatus.CANCELLED)

    _ = await services.task_runner.run_task("meeting-reminder", now)

    messages = [n.message for n in await seed.notifications(student.user_id)]
    assert len(messages) == 1
    assert "Early Session" in messages[0]


@pytest.mark.asyncio
async def test_existing_reminder_without_dedup_key_still_blocks(services, seed, now) -> None:
    section = await seed.section()
    student = await _active_student(seed, section)
    _ = await seed.meeting(section, scheduled_at=datetime(2026, 3, 10, 7, 0, tzinfo=UTC), title="Geometry Review")
    earlier = Notification(
        user_id=student.user_id,
        title="Meeting Today",
        message='The class "Geometry Review" is scheduled today at 14:00 WIB.',
        type=NotificationType.CLASS,
        created_at=now - timedelta(hours=1),
        updated_at=now - timedelta(hours=1),
    )
    await seed.add(earlier)

    result = await services.task_runner.run_task("meeting-reminder", now)

    assert result.details is not None
    assert result.details.skipped == 1
    assert len(await seed.notifications(student.user_id)) == 1


@pytest.mark.asyncio
async def test_yesterdays_reminder_does_not_block_today(services, seed, now) -> None:
    section = await seed.section()
    student = await _active_student(seed, section)
    _ = await seed.meeting(section, scheduled_at=datetime(2026, 3, 10, 7, 0, tzinfo=UTC), title="Weekly Sync")
    stale = Notification(
        user_id=student.user_id,
        title="Meeting Today",
        message='The class "Weekly Sync" is scheduled today at 14:00 WIB.',
        type=NotificationType.CLASS,
        created_at=now - timedelta(days=1),
        updated_at=now - timedelta(days=1),
    )
    await seed.add(stale)

    result = await services.task_runner.run_task("meeting-reminder", now)

    assert result.details is not None
    assert result.details.processed == 1


@pytest.mark.asyncio
async def test_assignment_reminder_skips_submitters(services, seed, now) -> None:
    section = await seed.section(template_name="Biology")
    submitted = await _active_student(seed, section)
    pending = await _active_student(seed, section)
    assignment = await seed.assignment(section, due_date=datetime(2026, 3, 10, 16, 59, tzinfo=UTC), title="Cell Diagram")
    _ = await seed.assignment(section, due_date=datetime(2026, 3, 10, 10, 0, tzinfo=UTC), title="Draft Only", status=AssignmentStatus.DRAFT)
    _ = await seed.submission(assignment, submitted, submitted_at=now - timedelta(hours=5))

    first = await services.task_runner.run_task("assignment-reminder", now)
    second = await services.task_runner.run_task("assignment-reminder", now)

    assert first.message == "Sent 1 assignment reminders for 1 assignments due today"
    assert first.details is not None
    assert (first.details.total, first.details.processed, first.details.skipped) == (2, 1, 1)
    assert second.details is not None
    assert second.details.processed == 0

    assert await seed.notifications(submitted.user_id) == []
    reminders = await seed.notifications(pending.user_id)
    assert len(reminders) == 1
    assert reminders[0].title == "Assignment Due Today!"
    assert reminders[0].type == NotificationType.ASSIGNMENT
    assert "Cell Diagram" in reminders[0].message
    assert "Biology" in reminders[0].message


@pytest.mark.asyncio
async def test_meetings_with_overlapping_titles_each_get_a_reminder(services, seed, now) -> None:
    section = await seed.section()
    student = await _active_student(seed, section)
    _ = await seed.meeting(section, scheduled_at=datetime(2026, 3, 10, 5, 0, tzinfo=UTC), title="Algebra Basics")
    _ = await seed.meeting(section, scheduled_at=datetime(2026, 3, 10, 7, 0, tzinfo=UTC), title="Algebra")

    result = await services.task_runner.run_task("meeting-reminder", now)

    assert result.details is not None
    assert (result.details.processed, result.details.skipped) == (2, 0)
    messages = [n.message for n in await seed.notifications(student.user_id)]
    assert len(messages) == 2
    assert any('"Algebra Basics"' in message for message in messages)
    assert any('"Algebra"' in message for message in messages)


@pytest.mark.asyncio
async def test_summary_counts_every_event_of_the_day(services, seed, now) -> None:
    section = await seed.section()
    _ = await _active_student(seed, section)
    empty_section = await seed.section(label="B")
    _ = await seed.meeting(section, scheduled_at=datetime(2026, 3, 10, 7, 0, tzinfo=UTC), title="Algebra Basics")
    _ = await seed.meeting(empty_section, scheduled_at=datetime(2026, 3, 10, 8, 0, tzinfo=UTC), title="Geometry")
    _ = await seed.assignment(empty_section, due_date=datetime(2026, 3, 10, 10, 0, tzinfo=UTC), title="Proofs")

    meetings = await services.task_runner.run_task("meeting-reminder", now)
    assignments = await services.task_runner.run_task("assignment-reminder", now)

    assert meetings.message == "Sent 1 meeting reminders for 2 meetings today"
    assert assignments.message == "Sent 0 assignment reminders for 1 assignments due today"
