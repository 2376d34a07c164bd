from pathlib import Path

from alembic import command
from alembic.config import Config

from common.utils.utils import get_logger

logger = get_logger(__name__)

_REPO_ROOT = Path(__file__).resolve().parents[4]


def run_migrations(database_url: str | None = None) -> bool:
    """Run database migrations using Alembic.

    Without ``database_url`` the URL is taken from the config service inside alembic/env.py.
    """
    try:
        alembic_cfg = Config(str(_REPO_ROOT / "libs" / "shared_db" / "alembic.ini"))

        script_location = alembic_cfg.get_main_option("script_location")
        if script_location and not Path(script_location).is_absolute():
            alembic_cfg.set_main_option("script_location", str(_REPO_ROOT / script_location))
        if database_url:
            alembic_cfg.set_main_option("sqlalchemy.url", database_url)

        # Keep our structured logging instead of alembic's fileConfig
        alembic_cfg.attributes["configure_logger"] = False

        logger.info("Starting database migrations", operation="run_migrations")
        command.upgrade(alembic_cfg, "head")
        logger.info("Database migrations completed successfully", operation="run_migrations", status="success")
        return True
    except Exception as e:
        logger.exception("Migration failed", operation="run_migrations", status="failed", error=str(e))
        return False
