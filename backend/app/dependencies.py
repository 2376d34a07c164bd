import secrets

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.service_container import Services
from app.services.reconciliation import TaskRunner
from common.core.app_error import Errors
from common.core.config_service import ConfigService
from common.utils.utils import get_logger

logger = get_logger()

# Security scheme; a missing header is rejected by verify_cron_secret with the app's own 401 body
optional_security = HTTPBearer(auto_error=False)


def get_services() -> Services:
    return Services.instance()


def get_config_service(services: Services = Depends(get_services)) -> ConfigService:
    return services.config_service


def get_task_runner(services: Services = Depends(get_services)) -> TaskRunner:
    return services.task_runner


def get_cron_secret(config_service: ConfigService = Depends(get_config_service)) -> str:
    return config_service.cron.secret


async def verify_cron_secret(
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_security),
    cron_secret: str = Depends(get_cron_secret),
) -> None:
    """Reject the trigger unless it carries ``Authorization: Bearer <CRON_SECRET>``."""
    if not cron_secret:
        logger.error("CRON_SECRET is not configured; rejecting trigger")
        raise Errors.Cron.UNAUTHORIZED.create()

    supplied = credentials.credentials if credentials is not None else ""
    if not secrets.compare_digest(supplied.encode("utf-8"), cron_secret.encode("utf-8")):
        logger.warning("Cron trigger rejected", has_credentials=credentials is not None)
        raise Errors.Cron.UNAUTHORIZED.create()
