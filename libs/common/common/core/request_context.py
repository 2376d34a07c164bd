from __future__ import annotations

from contextvars import ContextVar
from typing import Any

from pydantic import Field

from common.ids import RequestId, RunId, new_id
from common.utils import JsonModel
from common.utils.utils import ContextVarManager, use_context_var


class RequestContext(JsonModel):
    """Ambient per-request (or per-run) context, merged into every log line."""

    request_id: RequestId = Field(default_factory=lambda: RequestId(new_id()))
    endpoint: str | None = None
    trigger: str | None = None

    run_id: RunId | None = None
    task: str | None = None

    @staticmethod
    def get_or_none() -> RequestContext | None:
        return _context_var.get(None)

    @staticmethod
    def context(**fields: Any) -> ContextVarManager[RequestContext]:
        current = _context_var.get(None)
        ctx = current.model_copy(update=fields) if current is not None else RequestContext(**fields)
        return use_context_var(_context_var, ctx)


_context_var: ContextVar[RequestContext] = ContextVar("request_context")
