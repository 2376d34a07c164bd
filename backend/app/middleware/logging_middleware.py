"""Middleware for logging HTTP requests and responses."""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from common.core.request_context import RequestContext
from common.utils.utils import get_logger

logger = get_logger()

# Polled by load balancers; logged at debug only
QUIET_PATHS = ("/health", "/api/v1/health")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs request start, status and timing. The Authorization header is never logged."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        context = RequestContext.get_or_none()
        req_logger = logger.bind(request_id=context.request_id) if context is not None else logger

        request_path = request.url.path
        request_method = request.method
        log_data = {
            "type": "request_started",
            "client_ip": request.client.host if request.client else "unknown",
            "method": request_method,
            "path": request_path,
            "query_params": str(request.query_params),
        }
        log = req_logger.debug if request_path in QUIET_PATHS else req_logger.info
        log(f"Request started: {request_method} {request_path}", **log_data)

        start_time = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception as e:
            req_logger.error(
                f"Request failed: {request_method} {request_path}",
                type="request_failed",
                method=request_method,
                path=request_path,
                error=str(e),
                process_time_ms=int((time.perf_counter() - start_time) * 1000),
                exc_info=True,
            )
            raise

        response_log_data = {
            "type": "request_completed",
            "method": request_method,
            "path": request_path,
            "status_code": response.status_code,
            "process_time_ms": int((time.perf_counter() - start_time) * 1000),
        }
        if response.status_code >= 500:
            req_logger.error(f"Request completed: {request_method} {request_path} - {response.status_code}", **response_log_data)
        elif response.status_code >= 400:
            req_logger.warning(f"Request completed: {request_method} {request_path} - {response.status_code}", **response_log_data)
        else:
            log(f"Request completed: {request_method} {request_path} - {response.status_code}", **response_log_data)
        return response
