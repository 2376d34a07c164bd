# backend/app/routers/__init__.py


from fastapi import APIRouter

from app.schemas.health import HealthCheckResponse
from common.core.config_service import config_service
from common.utils.utils import get_logger

from .cron import cron_router

logger = get_logger()

router = APIRouter()


# Health check endpoint
@router.get("/api/v1/health")
async def health_check() -> HealthCheckResponse:
    """Health check endpoint for monitoring and testing"""
    database_url = config_service.get_database_url()
    return HealthCheckResponse(
        status="healthy",
        service="reconciliation",
        environment=config_service.get_environment(),
        is_testing=config_service.is_testing(),
        database_type="sqlite" if database_url.startswith("sqlite") else "postgresql",
        payment_gateway_configured=config_service.payment_gateway.is_configured,
    )


# Include route definitions
router.include_router(cron_router, prefix="/api/v1", tags=["cron"])
