"""Runtime configuration, read from ``TAILORPULSE_*`` environment variables."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AlertThresholds(BaseSettings):
    """Threshold values the alert engine evaluates against."""

    model_config = SettingsConfigDict(env_prefix="TAILORPULSE_ALERT_")

    cpu_warning_percent: float = 75.0
    cpu_critical_percent: float = 90.0
    memory_warning_percent: float = 75.0
    memory_critical_percent: float = 90.0
    error_rate_percent: float = 5.0
    error_rate_window_seconds: float = 15 * 60


class CacheTTLs(BaseSettings):
    """Per-query cache lifetimes in seconds."""

    model_config = SettingsConfigDict(env_prefix="TAILORPULSE_CACHE_TTL_")

    summary: float = 60
    api: float = 300
    errors: float = 300
    alerts: float = 300
    health: float = 15
    performance: float = 60
    queues: float = 60


class MonitoringSettings(BaseSettings):
    """Top-level settings for the monitoring service."""

    model_config = SettingsConfigDict(env_prefix="TAILORPULSE_")

    database_path: str = "tailorpulse.db"
    redis_url: str | None = None

    collection_interval_seconds: float = 60.0
    retention_seconds: float | None = 30 * 24 * 3600
    query_timeout_seconds: float = 5.0

    health_degraded_percent: float = 70.0
    health_unhealthy_percent: float = 90.0

    top_endpoints: int = 10
    recent_feed_size: int = 10

    thresholds: AlertThresholds = Field(default_factory=AlertThresholds)
    cache_ttl: CacheTTLs = Field(default_factory=CacheTTLs)
