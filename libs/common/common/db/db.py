from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, override

from pydantic import BaseModel
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from common.core.lifecycle import Lifecycle
from common.utils import decode_json, encode_json_str, get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = get_logger()


class DBConfig(BaseModel):
    url: str
    pool_size: int = 10
    pool_max_overflow: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 300
    echo: bool = False
    pool_pre_ping: bool = True
    pool_disabled: bool = False

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_memory(self) -> bool:
        return self.is_sqlite and (":memory:" in self.url or make_url(self.url).database in (None, ""))


class Db(Lifecycle):
    """Owns the async engine and hands out sessions.

    Every session is independent; callers commit or roll back explicitly.
    """

    _config: DBConfig
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]

    def __init__(self, config: DBConfig) -> None:
        super().__init__()
        self._config = config

        if config.is_sqlite:
            self.engine = create_async_engine(
                config.url,
                json_serializer=encode_json_str,
                json_deserializer=decode_json,
                echo=config.echo,
                connect_args={"check_same_thread": False},
                # One shared connection keeps an in-memory database alive across sessions
                poolclass=StaticPool if config.is_memory else None,
            )

            @event.listens_for(self.engine.sync_engine, "connect")
            def _sqla_on_connect(dbapi_connection: Any, _: Any) -> Any:  # type: ignore
                """Disable pysqlite's implicit BEGIN handling so the "begin" hook controls transactions."""
                dbapi_connection.isolation_level = None

            @event.listens_for(self.engine.sync_engine, "begin")
            def _sqla_on_begin(conn: Any) -> Any:  # type: ignore
                conn.exec_driver_sql("BEGIN")
        else:
            self.engine = create_async_engine(
                config.url,
                json_serializer=encode_json_str,
                json_deserializer=decode_json,
                echo=config.echo,
                max_overflow=config.pool_max_overflow,
                pool_size=config.pool_size,
                pool_timeout=config.pool_timeout,
                pool_recycle=config.pool_recycle,
                pool_pre_ping=config.pool_pre_ping,
                pool_use_lifo=True,
                poolclass=NullPool if config.pool_disabled else None,
            )

        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False, autoflush=False)

    @property
    @override
    def _name_for_log(self) -> str:
        return f"Db[{make_url(self._config.url).get_backend_name()}]"

    @override
    async def _start(self) -> None:
        pass

    @override
    async def _stop(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def new_session(self) -> AsyncGenerator[AsyncSession]:
        async with self.session_factory() as session:
            yield session
