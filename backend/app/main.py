from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from app.middleware.logging_middleware import RequestLoggingMiddleware
from app.routers import router as api_router
from app.service_container import Services
from app.utils.fastapi_utils import install_exception_handlers
from common.core.config_service import config_service, settings
from common.core.request_context import RequestContext
from common.logging import setup_logging
from common.utils.utils import get_logger
from shared_db.db.init_db import init_db

# ConfigService has already loaded the .env files, so LOG_* settings are visible here
setup_logging()

logger = get_logger()


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncGenerator[None, Any]:
    services = Services.instance()
    await services.start()

    logger.info("Starting application database setup")
    success = await init_db(services.db, config_service.get_database_url())
    if success:
        logger.info("Database setup completed successfully", service="database", status="initialized")
    else:
        logger.error("Database setup failed", service="database", status="failed")
        await services.stop()
        raise RuntimeError("Failed to initialize database")

    yield

    logger.info("Application shutting down")
    await services.stop()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Daily subscription and payment reconciliation for the tutoring platform",
    version="1.0.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# 1. Request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# 2. CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Custom middleware to set up RequestContext for all requests
class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        with RequestContext.context() as request_context:
            request_context.endpoint = str(request.url.path)
            return await call_next(request)


# Added last so it wraps the logging middleware and the request id is bound first
app.add_middleware(RequestContextMiddleware)

# Custom exception handlers
install_exception_handlers(app)

# Include routers
app.include_router(api_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    host = config_service.get("host", "0.0.0.0")
    port = int(config_service.get("port", 9998))

    logger.info("Starting application server", host=host, port=port, environment=config_service.get_environment())

    uvicorn.run(app, host=host, port=port)
