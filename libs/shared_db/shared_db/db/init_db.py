import asyncio

from sqlalchemy.exc import SQLAlchemyError

from common.db.db import Db
from common.utils.utils import get_logger
from shared_db.db import Base
from shared_db.db.run_migrations import run_migrations

# Registers every table on Base.metadata
import shared_db.models  # noqa: F401  # isort: skip

logger = get_logger()


async def create_tables(db: Db) -> None:
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db(db: Db, database_url: str) -> bool:
    """Bring the schema up to date.

    SQLite gets ``create_all``; other databases run Alembic migrations and fall back
    to ``create_all`` when migrations fail.
    """
    try:
        if database_url.startswith("sqlite"):
            logger.info("Using SQLite - creating tables with create_all()", operation="create_sqlite_tables")
            await create_tables(db)
            return True

        logger.info("Running database migrations", operation="run_migrations")
        # Alembic's async env drives its own event loop, so it runs in a worker thread
        if await asyncio.to_thread(run_migrations, database_url):
            return True

        logger.warning("Migrations failed, falling back to create_all()", operation="create_tables_fallback")
        await create_tables(db)
        return True
    except SQLAlchemyError as e:
        logger.exception("Error during database initialization", operation="init_db", error=str(e))
        return False
