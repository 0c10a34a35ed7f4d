"""Runtime settings loaded from the environment (and an optional .env file)."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SERVER_URL = "http://localhost:9001/api/v1"
SWAGGER_SPEC_SUFFIX = "/spec/swagger.json"


class Settings(BaseSettings):
    """
    Settings for the remote reporting service and job polling.

    Attributes
    ----------
    server_url : str | None
        Base URL of the reporting API (``REPORTS_SERVER_URL``)
    pioneer_url_spec : str | None
        Legacy swagger spec URL (``NEXT_PUBLIC_PIONEER_URL_SPEC``); used to
        derive the base URL when ``server_url`` is not set
    http_timeout_seconds : float
        Timeout for a single HTTP request
    poll_interval_seconds : float
        Delay between job status checks
    poll_max_attempts : int
        Job status checks before giving up
    log_level : str
        Default log level for the CLI

    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    server_url: str | None = Field(default=None, alias="REPORTS_SERVER_URL")
    pioneer_url_spec: str | None = Field(default=None, alias="NEXT_PUBLIC_PIONEER_URL_SPEC")
    http_timeout_seconds: float = Field(default=30.0, alias="REPORTS_HTTP_TIMEOUT_SECONDS")
    poll_interval_seconds: float = Field(default=1.0, alias="REPORTS_POLL_INTERVAL_SECONDS")
    poll_max_attempts: int = Field(default=60, alias="REPORTS_POLL_MAX_ATTEMPTS")
    log_level: str = Field(default="WARNING", alias="LOG_LEVEL")

    @property
    def reporting_base_url(self) -> str:
        """Resolve the reporting API base URL."""
        if self.server_url:
            return self.server_url.rstrip("/")
        if self.pioneer_url_spec:
            root = self.pioneer_url_spec.replace(SWAGGER_SPEC_SUFFIX, "").rstrip("/")
            return f"{root}/api/v1"
        return DEFAULT_SERVER_URL


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
