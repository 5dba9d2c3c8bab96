"""
Application configuration using Pydantic Settings
"""

from pydantic import Field
from pydantic_settings import BaseSettings
from typing import Optional

from core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # BigQuery destination
    GOOGLE_CLOUD_PROJECT_ID: Optional[str] = None
    BIGQUERY_DATASET_ID: Optional[str] = None

    # Workload identity federation
    GCP_PROJECT_NUMBER: Optional[str] = None
    GCP_WORKLOAD_IDENTITY_POOL_ID: Optional[str] = None
    GCP_WORKLOAD_IDENTITY_POOL_PROVIDER_ID: Optional[str] = None
    GCP_SERVICE_ACCOUNT_EMAIL: Optional[str] = None
    OIDC_TOKEN_ENV_VAR: str = "VERCEL_OIDC_TOKEN"
    OIDC_TOKEN_FILE: Optional[str] = None

    # Meta Marketing API
    META_AD_ACCOUNT_ID: Optional[str] = None
    META_ACCESS_TOKEN: Optional[str] = None
    META_API_VERSION: str = "v19.0"

    # Pinterest Ads API
    PINTEREST_AD_ACCOUNT_ID: Optional[str] = None
    PINTEREST_APP_ID: Optional[str] = None
    PINTEREST_APP_SECRET: Optional[str] = None
    PINTEREST_REFRESH_TOKEN: Optional[str] = None

    # Route secrets
    INGEST_SECRET: Optional[str] = None
    CRON_SECRET: Optional[str] = None

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Ingestion
    HTTP_TIMEOUT: float = 30.0
    CHUNK_DAYS: int = Field(7, ge=1, le=7, description="Days per chunk; platform requests cover at most a week")
    ENABLE_SCHEDULER: bool = False
    DAILY_INGEST_HOUR: int = 2

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @property
    def workload_identity_audience(self) -> str:
        """Full resource name of the workload identity pool provider"""
        self.require(
            "GCP_PROJECT_NUMBER",
            "GCP_WORKLOAD_IDENTITY_POOL_ID",
            "GCP_WORKLOAD_IDENTITY_POOL_PROVIDER_ID",
        )
        return (
            f"//iam.googleapis.com/projects/{self.GCP_PROJECT_NUMBER}"
            f"/locations/global/workloadIdentityPools/{self.GCP_WORKLOAD_IDENTITY_POOL_ID}"
            f"/providers/{self.GCP_WORKLOAD_IDENTITY_POOL_PROVIDER_ID}"
        )

    def require(self, *names: str) -> None:
        """Raise ConfigurationError if any of the named settings is empty"""
        missing = [name for name in names if not getattr(self, name, None)]
        if missing:
            raise ConfigurationError(
                f"Missing required settings: {', '.join(missing)}",
                context={"missing": missing}
            )


settings = Settings()
