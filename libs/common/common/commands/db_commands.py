import asyncio

import typer

from common.core.config_service import config_service
from common.db.db import Db, DBConfig
from common.logging import setup_logging
from common.utils.utils import get_logger
from shared_db.db.init_db import init_db
from shared_db.db.run_migrations import run_migrations

logger = get_logger(__name__)

app = typer.Typer(help="Database management commands")


@app.callback()
def _configure() -> None:
    setup_logging()


async def _init(database_url: str) -> bool:
    db = Db(DBConfig(url=database_url))
    try:
        return await init_db(db, database_url)
    finally:
        await db.engine.dispose()


@app.command()
def init() -> None:
    """Create or migrate the schema for the configured database."""
    database_url = config_service.get_database_url()
    logger.info("Initializing database...")
    if not asyncio.run(_init(database_url)):
        logger.error("Database initialization failed!")
        raise typer.Exit(code=1)
    logger.info("Database initialized successfully!")


@app.command()
def migrate() -> None:
    """Run database migrations using Alembic."""
    logger.info("Running database migrations...")
    if not run_migrations():
        logger.error("Database migrations failed!")
        raise typer.Exit(code=1)
    logger.info("Database migrations completed successfully!")


if __name__ == "__main__":
    app()
