"""
Configuration for pipescaler.

Each external collaborator gets its own settings group, loaded from environment
variables (or a local ``.env`` file) by pydantic-settings.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


def _settings_config() -> SettingsConfigDict:
    return SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


# ============================================================================
# External services
# ============================================================================

class AzureCredentialConfig(BaseSettings):
    """Service principal used for Resource Manager and Storage calls."""
    tenant_id: str = Field(default="", validation_alias="AZURE_TENANT_ID")
    client_id: str = Field(default="", validation_alias="AZURE_CLIENT_ID")
    client_secret: str = Field(default="", validation_alias="AZURE_CLIENT_SECRET")
    subscription_id: str = Field(default="", validation_alias="AZURE_SUBSCRIPTION_ID")
    authority: str = Field(default="https://login.microsoftonline.com",
                           validation_alias="AZURE_AUTHORITY")
    resource_manager_url: str = Field(default="https://management.azure.com",
                                      validation_alias="AZURE_RESOURCE_MANAGER_URL")

    @field_validator('authority', 'resource_manager_url')
    @classmethod
    def validate_url(cls, v):
        if not v.startswith(('http://', 'https://')):
            raise ValueError('URL must start with http:// or https://')
        return v.rstrip('/')

    model_config = _settings_config()


class QueueConfig(BaseSettings):
    """Input work queue (Azure Storage queue)."""
    account_name: str = Field(default="", validation_alias="QUEUE_ACCOUNT_NAME")
    name: str = Field(default="pipeline-input", validation_alias="QUEUE_NAME")
    endpoint: Optional[str] = Field(default=None, validation_alias="QUEUE_ENDPOINT")
    api_version: str = Field(default="2021-08-06", validation_alias="QUEUE_API_VERSION")

    @property
    def base_url(self) -> str:
        if self.endpoint:
            return self.endpoint.rstrip('/')
        return f"https://{self.account_name}.queue.core.windows.net"

    model_config = _settings_config()


class ComputeConfig(BaseSettings):
    """Relay/compute service (App Service or Function App)."""
    resource_group: str = Field(default="", validation_alias="COMPUTE_RESOURCE_GROUP")
    app_name: str = Field(default="", validation_alias="COMPUTE_APP_NAME")
    api_version: str = Field(default="2022-03-01", validation_alias="COMPUTE_API_VERSION")

    model_config = _settings_config()


class ClusterConfig(BaseSettings):
    """HDInsight cluster and its Livy endpoint."""
    resource_group: str = Field(default="", validation_alias="CLUSTER_RESOURCE_GROUP")
    name: str = Field(default="", validation_alias="CLUSTER_NAME")
    api_version: str = Field(default="2021-06-01", validation_alias="CLUSTER_API_VERSION")
    template_path: Optional[str] = Field(default=None, validation_alias="CLUSTER_TEMPLATE_PATH")
    login_user: str = Field(default="admin", validation_alias="CLUSTER_LOGIN_USER")
    login_password: str = Field(default="", validation_alias="CLUSTER_LOGIN_PASSWORD")
    livy_endpoint: Optional[str] = Field(default=None, validation_alias="CLUSTER_LIVY_URL")

    @property
    def livy_url(self) -> str:
        if self.livy_endpoint:
            return self.livy_endpoint.rstrip('/')
        return f"https://{self.name}.azurehdinsight.net/livy"

    model_config = _settings_config()


class AlertConfig(BaseSettings):
    """Alert sink endpoint. Alerts are only logged when no URL is set."""
    url: Optional[str] = Field(default=None, validation_alias="ALERT_URL")

    model_config = _settings_config()


# ============================================================================
# Control loop and process
# ============================================================================

class ControlLoopConfig(BaseSettings):
    """Tick cadence and scale-down debounce."""
    interval_seconds: float = Field(default=60.0, validation_alias="LOOP_INTERVAL_SECONDS")
    idle_window_minutes: float = Field(default=15.0, validation_alias="LOOP_IDLE_WINDOW_MINUTES")
    past_due_tolerance_seconds: float = Field(default=5.0,
                                              validation_alias="LOOP_PAST_DUE_TOLERANCE_SECONDS")
    dry_run: bool = Field(default=False, validation_alias="LOOP_DRY_RUN")
    http_timeout_seconds: float = Field(default=30.0, validation_alias="LOOP_HTTP_TIMEOUT_SECONDS")

    @field_validator('interval_seconds', 'idle_window_minutes', 'http_timeout_seconds')
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError('Value must be greater than zero')
        return v

    @field_validator('past_due_tolerance_seconds')
    @classmethod
    def validate_tolerance(cls, v):
        if v < 0:
            raise ValueError('Past-due tolerance cannot be negative')
        return v

    model_config = _settings_config()


class ServerConfig(BaseSettings):
    """HTTP server for health, metrics and manual ticks."""
    enabled: bool = Field(default=True, validation_alias="SERVER_ENABLED")
    host: str = Field(default="0.0.0.0", validation_alias="SERVER_HOST")
    port: int = Field(default=8080, validation_alias="SERVER_PORT")

    @field_validator('port')
    @classmethod
    def validate_port(cls, v):
        if v < 1 or v > 65535:
            raise ValueError('Port must be between 1 and 65535')
        return v

    model_config = _settings_config()


class PipeScalerConfig(BaseSettings):
    """Main configuration class that combines all component configurations."""

    log_level: LogLevel = Field(default=LogLevel.INFO, validation_alias="LOG_LEVEL")
    log_format: str = Field(default="text", validation_alias="LOG_FORMAT")

    azure: AzureCredentialConfig = Field(default_factory=AzureCredentialConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    compute: ComputeConfig = Field(default_factory=ComputeConfig)
    cluster: ClusterConfig = Field(default_factory=ClusterConfig)
    alert: AlertConfig = Field(default_factory=AlertConfig)
    loop: ControlLoopConfig = Field(default_factory=ControlLoopConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        if v not in ('text', 'json'):
            raise ValueError("Log format must be 'text' or 'json'")
        return v

    model_config = _settings_config()


def load_config() -> PipeScalerConfig:
    """
    Load and validate configuration from environment variables.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    try:
        return PipeScalerConfig()
    except ValueError as e:
        raise ConfigurationError(f"Failed to load configuration: {e}") from e


_config: Optional[PipeScalerConfig] = None


def get_config() -> PipeScalerConfig:
    """Get the process-wide configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
