"""
Configuration management using pydantic-settings.

Hierarchical configuration with environment variable support.
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PluginConfig(BaseModel):
    """Structured per-plugin config blob (``SCALEDOWN_PLUGIN_CONFIG``)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    enabled: bool = Field(default=False)
    custom_configs: dict[str, str | bool] | None = Field(default=None, alias="customConfigs")


class AuditSettings(BaseSettings):
    """Audit (search index) settings."""

    model_config = SettingsConfigDict(env_prefix="SCALEDOWN_ES_")

    enabled: bool = Field(default=False, description="Write scale-down audit records")
    url: str = Field(default="http://localhost:9200")
    index_name: str = Field(default="ooscaledown")
    document_type: str = Field(default="platform")
    timeout: float = Field(default=30.0, ge=0.1)


class ThanosSettings(BaseSettings):
    """Thanos / Prometheus query API settings."""

    model_config = SettingsConfigDict(env_prefix="THANOS_")

    url: str = Field(default="http://localhost:10902")
    query_timeout: float = Field(default=30.0, ge=0.1)
    reclaim_metric: str = Field(default="oneops_cloud_reclaim_vms")
    ns_path_label: str = Field(default="nsPath")
    cloud_label: str = Field(default="cloud")


class OneOpsSettings(BaseSettings):
    """OneOps deployment API settings."""

    model_config = SettingsConfigDict(env_prefix="ONEOPS_")

    url: str = Field(default="http://localhost:8080/transistor/rest")
    timeout: float = Field(default=60.0, ge=0.1)
    user_header: str = Field(default="X-Cms-User")


class ScaleDownSettings(BaseSettings):
    """Scale-down plugin settings."""

    model_config = SettingsConfigDict(env_prefix="SCALEDOWN_")

    plugin_config: PluginConfig = Field(default_factory=PluginConfig)
    acting_user: str = Field(default="OneOps-ScaleDown")
    max_concurrent_platforms: int = Field(
        default=1, ge=1, description="Platforms processed in parallel per environment"
    )


class AppSettings(BaseSettings):
    """Application-level settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: Literal["development", "staging", "production"] = Field(default="development")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")

    # Nested settings
    audit: AuditSettings = Field(default_factory=AuditSettings)
    thanos: ThanosSettings = Field(default_factory=ThanosSettings)
    oneops: OneOpsSettings = Field(default_factory=OneOpsSettings)
    scaledown: ScaleDownSettings = Field(default_factory=ScaleDownSettings)

    @property
    def is_production(self) -> bool:
        return self.env == "production"


@lru_cache
def get_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings()
