"""Shared skeleton for the daily reconciliation tasks.

A task loads its candidates once, then handles them one at a time. Every entity is committed on its
own; an exception rolls back only that entity, records its id as failed and moves on to the next one.
Exceptions raised while loading candidates propagate to the runner as a task-level failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from enum import StrEnum
from typing import ClassVar

from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.reconciliation import TaskDetails, TaskResult
from common.utils.utils import get_logger

logger = get_logger()

type SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class EntityOutcome(StrEnum):
    PROCESSED = "processed"
    SKIPPED = "skipped"


class ReconciliationTask[T](ABC):
    name: ClassVar[str]

    def __init__(self, new_session: SessionFactory) -> None:
        self._new_session = new_session

    async def run(self, now: datetime) -> TaskResult:
        details = TaskDetails()
        async with self._new_session() as db:
            items = await self._load(db, now)
            details.total = len(items)
            logger.info("Task started", task=self.name, total=details.total)

            for item in items:
                entity_id = self._entity_id(item)
                try:
                    outcome = await self._process(db, item, now)
                    await db.commit()
                except Exception as e:
                    await db.rollback()
                    logger.exception("Entity processing failed", task=self.name, entity_id=entity_id, exc_info=e)
                    details.failed.append(entity_id)
                    continue

                if outcome == EntityOutcome.SKIPPED:
                    details.skipped += 1
                else:
                    details.processed += 1

        message = self._summary(details, items)
        logger.info(
            "Task finished",
            task=self.name,
            total=details.total,
            processed=details.processed,
            skipped=details.skipped,
            failed=len(details.failed),
        )
        return TaskResult(task=self.name, success=True, message=message, details=details)

    @abstractmethod
    async def _load(self, db: AsyncSession, now: datetime) -> Sequence[T]:
        pass

    @abstractmethod
    async def _process(self, db: AsyncSession, item: T, now: datetime) -> EntityOutcome:
        pass

    @abstractmethod
    def _entity_id(self, item: T) -> str:
        pass

    @abstractmethod
    def _summary(self, details: TaskDetails, items: Sequence[T]) -> str:
        pass
