"""Configuration settings for the Synthetix metrics API."""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from snx_api.sources.ledger import EndpointConfig


class APISettings(BaseSettings):
    """API configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="SNX_API_",
        extra="ignore",
    )

    # API Configuration
    api_title: str = Field(default="Synthetix API", description="API title")
    api_description: str = Field(default="Synthetix metrics API", description="API description")
    api_version: str = Field(default="1.0.0", description="API version")
    debug: bool = Field(default=False, description="Debug mode")

    # Server Configuration
    host: str = Field(default="localhost", description="Server host")
    port: int = Field(default=3000, description="Server port")
    workers: int = Field(default=1, description="Number of worker processes")
    cors_origins: List[str] = Field(default=["*"], description="CORS allowed origins")

    # Cache Configuration
    cache_backend: str = Field(default="memory", description="Cache store (memory|redis)")
    redis_url: Optional[str] = Field(default=None, description="Redis connection URL")
    cache_ttl_override: Optional[int] = Field(
        default=None, description="When set, replaces every per-metric TTL"
    )
    cache_single_flight: bool = Field(
        default=False, description="Coalesce concurrent misses on one key into one computation"
    )

    # Background refresh
    enable_refresher: bool = Field(default=True, description="Periodically recompute prefetched metrics")
    refresh_interval_seconds: Optional[int] = Field(
        default=None, description="Caps every refresh interval; each metric otherwise refreshes 30s ahead of its TTL"
    )

    # Ledger endpoints
    mainnet_provider_url: Optional[str] = Field(default=None, description="Primary L1 RPC URL")
    mainnet_provider_user: Optional[str] = Field(default=None, description="Primary L1 RPC user")
    mainnet_provider_password: Optional[str] = Field(default=None, description="Primary L1 RPC password")
    mainnet_backup_provider_url: Optional[str] = Field(default=None, description="Backup L1 RPC URL")
    mainnet_backup_provider_user: Optional[str] = Field(default=None, description="Backup L1 RPC user")
    mainnet_backup_provider_password: Optional[str] = Field(default=None, description="Backup L1 RPC password")

    ovm_provider_url: Optional[str] = Field(default=None, description="Primary Optimism RPC URL")
    ovm_provider_user: Optional[str] = Field(default=None, description="Primary Optimism RPC user")
    ovm_provider_password: Optional[str] = Field(default=None, description="Primary Optimism RPC password")
    ovm_backup_provider_url: Optional[str] = Field(default=None, description="Backup Optimism RPC URL")
    ovm_backup_provider_user: Optional[str] = Field(default=None, description="Backup Optimism RPC user")
    ovm_backup_provider_password: Optional[str] = Field(default=None, description="Backup Optimism RPC password")

    rpc_timeout_seconds: float = Field(default=10.0, description="RPC request timeout")

    # Warehouse Configuration
    database_url: Optional[str] = Field(default=None, description="Warehouse connection URL")
    db_pool_size: int = Field(default=10, description="Database connection pool size")
    db_max_overflow: int = Field(default=20, description="Database max overflow connections")
    db_pool_timeout: int = Field(default=30, description="Database connection timeout")

    # Health check gate
    health_endpoint_user: str = Field(default="monitor", description="Health endpoint basic auth user")
    health_endpoint_password: Optional[str] = Field(default=None, description="Health endpoint basic auth password")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json|text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")

    # Monitoring Configuration
    enable_metrics: bool = Field(default=True, description="Enable Prometheus metrics")

    @field_validator("cache_backend")
    @classmethod
    def validate_cache_backend(cls, v):
        """Only the two shipped stores are accepted."""
        if v not in ("memory", "redis"):
            raise ValueError("cache_backend must be 'memory' or 'redis'")
        return v

    @field_validator("cache_ttl_override", "refresh_interval_seconds")
    @classmethod
    def validate_seconds(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Must be a positive number of seconds")
        return v

    def get_endpoint_config(self, network: str, backup: bool = False) -> Optional[EndpointConfig]:
        """Get the RPC endpoint configured for a network, or None."""

        prefix = {"mainnet": "mainnet", "mainnet-ovm": "ovm"}.get(network)
        if prefix is None:
            return None
        if backup:
            prefix = f"{prefix}_backup"

        url = getattr(self, f"{prefix}_provider_url")
        if not url:
            return None

        return EndpointConfig(
            network=network,
            url=url,
            user=getattr(self, f"{prefix}_provider_user"),
            password=getattr(self, f"{prefix}_provider_password"),
            timeout=self.rpc_timeout_seconds,
        )
