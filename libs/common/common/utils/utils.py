import asyncio
import sys
from collections.abc import Callable, Coroutine
from contextlib import AbstractAsyncContextManager, AbstractContextManager
from contextvars import ContextVar, Token
from datetime import UTC, datetime, timedelta
from threading import Thread
from typing import TYPE_CHECKING, Any, Concatenate, ParamSpec, TypeGuard, TypeVar, cast
from zoneinfo import ZoneInfo

import structlog

T = TypeVar("T")
R_co = TypeVar("R_co", covariant=True)
P = ParamSpec("P")

if TYPE_CHECKING:
    ClassMethod = classmethod
else:
    ClassMethod = Callable[[Callable[Concatenate[T, P], R_co]], Callable[Concatenate[T, P], R_co]]


def is_dict(obj: Any) -> TypeGuard[dict[str, Any]]:
    return isinstance(obj, dict)


def get_now() -> datetime:
    return datetime.now(UTC)


def local_day_bounds(now: datetime, timezone: str) -> tuple[datetime, datetime]:
    """Midnight-to-midnight window of the calendar day containing ``now`` in ``timezone``.

    Both bounds are returned in UTC; the end bound is exclusive.
    """
    tz = ZoneInfo(timezone)
    local_midnight = now.astimezone(tz).replace(hour=0, minute=0, second=0, microsecond=0)
    next_midnight = (local_midnight + timedelta(days=1)).replace(tzinfo=None).replace(tzinfo=tz)
    return local_midnight.astimezone(UTC), next_midnight.astimezone(UTC)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    if name is None:
        # Get the name of the module that called this function
        frame = sys._getframe(1)  # type: ignore  # 0 would be get_logger, 1 is the caller
        module_name = frame.f_globals["__name__"].rsplit(".", 1)[-1]
        name = module_name
    return structlog.stdlib.get_logger(name)


def blocking_run_async[T](coro: Coroutine[Any, Any, T], timeout: int | None = None) -> T:
    try:
        return asyncio.run(coro)
    except RuntimeError:
        pass

    future: asyncio.Future[T] = asyncio.Future()

    def run() -> None:
        try:
            future.set_result(asyncio.run(coro))
        except Exception as e:
            future.set_exception(e)

    thread = Thread(target=run, name=f"blocking_run_async__{coro.__name__}", daemon=True)
    thread.start()
    thread.join(timeout)

    return future.result(timeout)  # type: ignore


class ContextVarManager(AbstractContextManager[T], AbstractAsyncContextManager[T]):
    """A convenience wrapper that is both a sync and async context manager.
    Use it when you have both sync and async contexts and want to reduce overall nesting.
    """

    _var: ContextVar[T]
    _value: T
    _token: Token[T] | None

    def __init__(self, var: ContextVar[T], value: T) -> None:
        self._var = var
        self._value = value
        self._token = None

    def __enter__(self) -> T:
        self._token = self._var.set(self._value)
        return self._value

    def __exit__(self, *exc_details: object) -> None:
        if self._token is not None:
            self._var.reset(self._token)

    async def __aenter__(self) -> T:
        return self.__enter__()

    async def __aexit__(self, *exc_details: object) -> None:
        self.__exit__(*exc_details)


def use_context_var(var: ContextVar[T], value: T) -> ContextVarManager[T]:
    return ContextVarManager(var, value)


def cached_classmethod[T, **P, R_co](func: Callable[Concatenate[T, P], R_co]) -> ClassMethod[T, P, R_co]:
    def wrapper(cls: T, *args: P.args, **kwargs: P.kwargs) -> R_co:
        if not hasattr(cls, "_cache"):
            setattr(cls, "_cache", {})
        cache = getattr(cls, "_cache")
        key = (func, args, frozenset(kwargs.items()))
        if key not in cache:
            cache[key] = func(cls, *args, **kwargs)
        return cache[key]

    return classmethod(wrapper)  # type: ignore


def human_readable_duration(duration_seconds: float) -> str:
    hours = int(duration_seconds // 3600)
    minutes = int(duration_seconds % 3600 // 60)
    seconds = int(duration_seconds % 60)
    milliseconds = int((duration_seconds % 1) * 1000)
    parts: list[str] = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds:
        parts.append(f"{seconds}s")
    if milliseconds:
        parts.append(f"{milliseconds}ms")
    return " ".join(parts) if parts else "0s"


def deep_merge(base: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary that will be updated
        update: Dictionary with values to update

    Returns:
        Updated dictionary with deeply merged values
    """
    merged = base.copy()

    for key, value in update.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = deep_merge(merged[key], cast(dict[str, Any], value))
        else:
            merged[key] = value

    return merged
