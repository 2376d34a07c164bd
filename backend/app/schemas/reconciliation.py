"""Reconciliation run results."""

from datetime import datetime

from pydantic import Field

from common.utils.json_model import JsonModel


class TaskDetails(JsonModel):
    total: int = 0
    processed: int = 0
    skipped: int = 0
    failed: list[str] = Field(default_factory=list, description="Ids of entities whose processing failed")


class TaskResult(JsonModel):
    task: str
    success: bool
    message: str
    details: TaskDetails | None = None


class ReconciliationReport(JsonModel):
    success: bool
    message: str
    timestamp: datetime
    success_count: int
    fail_count: int
    results: list[TaskResult]
