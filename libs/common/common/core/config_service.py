"""Configuration service for the reconciliation backend.
Loads configuration from environment variables, AWS Secrets Manager, and a secrets file.
"""

import logging
import os
from pathlib import Path
from typing import Any, cast

import boto3
import yaml
from botocore.exceptions import ClientError, NoCredentialsError
from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_REPO_ROOT = Path(__file__).resolve().parents[4]


class CronSection(BaseModel):
    # An empty secret rejects every trigger
    secret: str = ""


class PaymentGatewaySection(BaseModel):
    api_key: str = ""
    currency: str = "idr"
    success_url: str = ""
    cancel_url: str = ""
    timeout_seconds: float = 20.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class ReconciliationSection(BaseModel):
    business_timezone: str = "Asia/Jakarta"
    renewal_window_days: int = 3
    renewal_dedup_days: int = 7
    billing_period_days: int = 30
    invoice_due_hours: int = 24


def _as_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "t", "yes")


class ConfigService:
    """Service for loading and accessing application configuration.
    Combines environment variables, AWS Secrets Manager, and secrets from YAML file.
    """

    cron: CronSection
    payment_gateway: PaymentGatewaySection
    reconciliation: ReconciliationSection

    def __init__(self) -> None:
        self._config: dict[str, Any] = {}
        self._secrets: dict[str, Any] = {}
        self._aws_secrets: dict[str, Any] = {}

        self._env = os.getenv("APP_ENV", "local")

        self._load_env_file()
        self._load_env_vars()
        self._load_aws_secrets()
        self._load_secrets()

        self.cron = CronSection(secret=str(self.get("cron.secret") or ""))
        defaults = PaymentGatewaySection()
        self.payment_gateway = PaymentGatewaySection(
            api_key=str(self.get("payment_gateway.api_key") or ""),
            currency=str(self.get("payment_gateway.currency") or defaults.currency),
            success_url=str(self.get("payment_gateway.success_url") or ""),
            cancel_url=str(self.get("payment_gateway.cancel_url") or ""),
            timeout_seconds=float(self.get("payment_gateway.timeout_seconds") or defaults.timeout_seconds),
        )
        rec_defaults = ReconciliationSection()
        self.reconciliation = ReconciliationSection(
            business_timezone=str(self.get("reconciliation.business_timezone") or rec_defaults.business_timezone),
            renewal_window_days=int(self.get("reconciliation.renewal_window_days") or rec_defaults.renewal_window_days),
            renewal_dedup_days=int(self.get("reconciliation.renewal_dedup_days") or rec_defaults.renewal_dedup_days),
            billing_period_days=int(self.get("reconciliation.billing_period_days") or rec_defaults.billing_period_days),
            invoice_due_hours=int(self.get("reconciliation.invoice_due_hours") or rec_defaults.invoice_due_hours),
        )

    def _load_env_file(self) -> None:
        """Load the appropriate .env file based on environment"""
        env_files_to_try: list[Path] = []
        if self._env == "local":
            env_files_to_try.append(_REPO_ROOT / ".env.local")
        else:
            env_files_to_try.append(_REPO_ROOT / f".env.{self._env}")
        env_files_to_try.append(_REPO_ROOT / ".env")

        for env_file in env_files_to_try:
            if env_file.exists():
                logger.info(f"Loading environment from {env_file}")
                _ = load_dotenv(env_file)
                return

        logger.debug("No environment file found. Using default values.")

    def _load_env_vars(self) -> None:
        """Load configuration from environment variables"""
        env_map = {
            "cron.secret": "CRON_SECRET",
            "payment_gateway.api_key": "PAYMENT_GATEWAY_API_KEY",
            "payment_gateway.currency": "PAYMENT_GATEWAY_CURRENCY",
            "payment_gateway.success_url": "PAYMENT_GATEWAY_SUCCESS_URL",
            "payment_gateway.cancel_url": "PAYMENT_GATEWAY_CANCEL_URL",
            "payment_gateway.timeout_seconds": "PAYMENT_GATEWAY_TIMEOUT_SECONDS",
            "reconciliation.business_timezone": "BUSINESS_TIMEZONE",
            "reconciliation.renewal_window_days": "RENEWAL_WINDOW_DAYS",
            "reconciliation.renewal_dedup_days": "RENEWAL_DEDUP_DAYS",
            "reconciliation.billing_period_days": "BILLING_PERIOD_DAYS",
            "reconciliation.invoice_due_hours": "INVOICE_DUE_HOURS",
        }
        self._config = {
            "app_env": self._env,
            "debug": _as_bool(os.getenv("DEBUG", "False")),
            "api_prefix": os.getenv("API_PREFIX", "/api/v1"),
            "project_name": os.getenv("PROJECT_NAME", "Tutoring Reconciliation"),
            "cors_origins": os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
            "port": int(os.getenv("PORT", "9998")),
            "host": os.getenv("HOST", "0.0.0.0"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
        }
        # Only explicitly set variables shadow the secrets files
        for key, env_name in env_map.items():
            value = os.getenv(env_name)
            if value:
                self._config[key] = value

    def _load_aws_secrets(self) -> None:
        """Load secrets from AWS Secrets Manager if configured"""
        if self._env in ("local", "test", "testing"):
            logger.debug(f"Skipping AWS Secrets Manager for APP_ENV={self._env}")
            return

        if not _as_bool(os.getenv("USE_AWS_SECRET_MANAGER", "true")):
            logger.info("AWS Secrets Manager disabled (USE_AWS_SECRET_MANAGER=false).")
            return

        secret_name = os.getenv("AWS_SECRETS_MANAGER_SECRET_NAME") or f"{self._env}_secret"

        try:
            region_name = os.getenv("AWS_DEFAULT_REGION", "us-east-1")
            session = boto3.Session()
            client = session.client(service_name="secretsmanager", region_name=region_name)  # type: ignore[misc]

            logger.info(f"Loading secrets from AWS Secrets Manager: {secret_name}")
            response: dict[str, Any] = client.get_secret_value(SecretId=secret_name)  # type: ignore[assignment]
            secrets_data: Any = yaml.safe_load(cast(str, response["SecretString"]))
            self._aws_secrets = cast(dict[str, Any], secrets_data) if secrets_data else {}
            logger.info("Successfully loaded secrets from AWS Secrets Manager")
        except NoCredentialsError:
            logger.exception("AWS credentials not found. Cannot load secrets from AWS Secrets Manager.")
        except ClientError as e:
            error_code = cast(dict[str, Any], e.response).get("Error", {}).get("Code", "Unknown")
            if error_code == "ResourceNotFoundException":
                logger.exception(f"The requested secret {secret_name} was not found.")
            else:
                logger.exception(f"Error loading secrets from AWS Secrets Manager ({error_code}): {e}")
        except yaml.YAMLError:
            logger.exception("Failed to parse secrets from AWS Secrets Manager. Expected YAML format.")

    def _load_secrets(self) -> None:
        """Load secrets from YAML file"""
        secrets_files_to_try = [_REPO_ROOT / "secrets.yaml", _REPO_ROOT / f"secrets.{self._env}.yaml"]
        secrets_file = next((path for path in secrets_files_to_try if path.exists()), None)
        if secrets_file is None:
            self._secrets = {}
            return

        try:
            with open(secrets_file) as f:
                self._secrets = yaml.safe_load(f) or {}
            logger.info(f"Loaded secrets from {secrets_file}")
        except (OSError, yaml.YAMLError) as e:
            logger.exception(f"Error loading secrets file: {e}")
            self._secrets = {}

    @staticmethod
    def _lookup(source: dict[str, Any], key: str) -> tuple[bool, Any]:
        value: Any = source
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = cast("Any", value[part])
            else:
                return False, None
        return True, value

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by key.
        Priority order:
        1. Environment variables (from _config dict)
        2. AWS Secrets Manager
        3. Local secrets file
        4. Direct environment variable lookup (os.getenv)
        5. Default value
        """
        if key in self._config:
            return self._config[key]

        for source in (self._aws_secrets, self._secrets):
            found, value = self._lookup(source, key)
            if found:
                return value

        env_value = os.getenv(key)
        if env_value is not None:
            return env_value

        return default

    def get_database_url(self) -> str:
        """Get the async database URL.
        Priority:
        1. DATABASE_URL environment variable
        2. database.url from AWS Secrets Manager or the local secrets file
        3. Constructed from database.* components
        """
        db_url = os.getenv("DATABASE_URL") or self.get("database.url")
        if not db_url:
            username = self.get("database.username", "postgres")
            password = self.get("database.password", "postgres")
            host = self.get("database.host", "localhost")
            port = self.get("database.port", 5432)
            name = self.get("database.name", "tutoring")
            db_url = f"postgresql://{username}:{password}@{host}:{port}/{name}"
        return to_async_database_url(str(db_url))

    def is_production(self) -> bool:
        return self._env.lower() == "production"

    def is_testing(self) -> bool:
        return self._env.lower() in ("test", "testing")

    def get_environment(self) -> str:
        return self._env


def to_async_database_url(url: str) -> str:
    """Upgrade a plain database URL to the async driver used by the engine."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def to_sync_database_url(url: str) -> str:
    """Inverse of ``to_async_database_url``, for alembic."""
    if url.startswith("postgresql+asyncpg://"):
        return url.replace("postgresql+asyncpg://", "postgresql://", 1)
    if url.startswith("sqlite+aiosqlite://"):
        return url.replace("sqlite+aiosqlite://", "sqlite://", 1)
    return url


config_service = ConfigService()


class Settings(BaseSettings):
    """HTTP-facing application settings"""

    model_config = SettingsConfigDict(case_sensitive=True, extra="ignore")

    API_V1_STR: str = config_service.get("api_prefix", "/api/v1")
    PROJECT_NAME: str = config_service.get("project_name", "Tutoring Reconciliation")
    CORS_ORIGINS: str = ",".join(config_service.get("cors_origins", ["http://localhost:3000"]))
    DEBUG: bool = config_service.get("debug", False)
    LOG_LEVEL: str = config_service.get("log_level", "INFO")

    @property
    def BACKEND_CORS_ORIGINS(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
