from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from common.utils.json_model import JsonModel


class ErrorDetails(JsonModel):
    scope: str
    code: str
    message: str
    details: dict[str, Any] | None = None


class ErrorConfig(JsonModel):
    scope: str
    code: str
    default_message: str
    http_status: int | None = None
    retryable: bool = False

    def create(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        http_status: int | None = None,
        cause: BaseException | None = None,
        retryable: bool | None = None,
    ) -> AppException:
        msg = message if message is not None else self.default_message
        http = http_status if http_status is not None else self.http_status
        retry = self.retryable if retryable is None else retryable

        app_error = AppError(
            details=ErrorDetails(scope=self.scope, code=self.code, message=msg, details=details),
            http_status=http,
            cause=cause,
            retryable=retry,
        )
        return AppException(app_error)

    def is_(self, error: BaseException) -> bool:
        return AppException.is_(error, self)


class Errors:
    class Generic:
        INVALID_INPUT = ErrorConfig(scope="generic", code="invalid_input", default_message="Invalid input", http_status=400)
        INTERNAL_ERROR = ErrorConfig(scope="generic", code="internal_error", default_message="Internal error", http_status=500)

    class Cron:
        UNAUTHORIZED = ErrorConfig(scope="cron", code="unauthorized", default_message="Unauthorized", http_status=401)
        UNKNOWN_TASK = ErrorConfig(scope="cron", code="unknown_task", default_message="Unknown reconciliation task", http_status=404)

    class Gateway:
        NOT_CONFIGURED = ErrorConfig(
            scope="payment_gateway", code="not_configured", default_message="Payment gateway is not configured", http_status=500
        )
        TRANSACTION_FAILED = ErrorConfig(
            scope="payment_gateway",
            code="transaction_failed",
            default_message="Payment gateway transaction failed",
            http_status=502,
            retryable=True,
        )

    class Reconciliation:
        MISSING_RELATION = ErrorConfig(
            scope="reconciliation", code="missing_relation", default_message="Referenced record does not exist", http_status=500
        )


class AppError(BaseModel):
    model_config = {"arbitrary_types_allowed": True}

    details: ErrorDetails = Field(..., description="Error details")
    http_status: int | None = Field(default=None, description="HTTP status code")
    retryable: bool = Field(default=False, description="Whether the error is retryable")
    cause: BaseException | None = Field(default=None, description="Underlying cause")

    @staticmethod
    def is_(error: BaseException, error_config: ErrorConfig) -> bool:
        return isinstance(error, AppError) and error.details.scope == error_config.scope and error.details.code == error_config.code


class AppException(Exception):
    """Exception wrapper for AppError that can be raised."""

    def __init__(self, app_error: AppError) -> None:
        self.app_error = app_error
        super().__init__(app_error.details.message)

    @property
    def details(self) -> ErrorDetails:
        return self.app_error.details

    @property
    def http_status(self) -> int | None:
        return self.app_error.http_status

    @property
    def retryable(self) -> bool:
        return self.app_error.retryable

    @property
    def cause(self) -> BaseException | None:
        return self.app_error.cause

    @staticmethod
    def is_(error: BaseException, error_config: ErrorConfig) -> bool:
        if isinstance(error, AppException):
            return error.details.scope == error_config.scope and error.details.code == error_config.code
        return AppError.is_(error, error_config)
