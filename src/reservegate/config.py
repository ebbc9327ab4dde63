"""
Centralized configuration management using pydantic-settings.
All services should import Settings from this module.
"""

from typing import Optional
from enum import Enum
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Environment types."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTNET = "testnet"


class StorageType(str, Enum):
    """Backends for the per-account deposit record."""
    MEMORY = "memory"
    REDIS = "redis"


class KafkaSettings(BaseSettings):
    """Kafka-specific settings."""
    bootstrap_servers: str = Field(default="localhost:9092", description="Kafka bootstrap servers")
    consumer_group: str = Field(default="reservegate-gateway", description="Consumer group id")
    enabled: bool = Field(default=True, description="Start the Kafka consumer with the API")

    # Topic names
    topic_deposit_requests: str = Field(default="gateway_deposit_requests", description="Deposit requests topic")
    topic_redemption_requests: str = Field(default="gateway_redemption_requests", description="Redemption requests topic")
    topic_chain_blocks: str = Field(default="chain_blocks", description="Block height updates topic")
    topic_conversion_results: str = Field(default="gateway_conversion_results", description="Conversion results topic")

    model_config = SettingsConfigDict(env_prefix="KAFKA_")


class GatewaySettings(BaseSettings):
    """Reserve gateway settings."""
    gateway_address: str = Field(default="reserve-gateway", description="Spender identity used when burning wrapped tokens")

    # Initial reserve pool parameters for the in-memory reserve
    initial_base_balance: int = Field(default=0, ge=0, description="Base asset held at startup")
    initial_wrapped_supply: int = Field(default=0, ge=0, description="Wrapped supply at startup")
    deposit_fee_rate: int = Field(default=0, ge=0, le=10**18, description="Deposit fee over 1e18")
    deposits_enabled: bool = Field(default=True, description="Accept deposits")
    max_deposit_amount: int = Field(default=10**24, ge=0, description="Largest single deposit")
    deposit_delay_blocks: int = Field(default=0, ge=0, description="Cooldown between deposit and redemption")
    start_block: int = Field(default=0, ge=0, description="Block height at startup")

    # Deposit record storage
    storage_type: StorageType = Field(default=StorageType.MEMORY, description="Deposit record backend")
    redis_url: str = Field(default="redis://localhost:6379", description="Redis URL for the redis backend")

    # History
    max_history: int = Field(default=1000, gt=0, description="Conversion receipts kept in memory")

    model_config = SettingsConfigDict(env_prefix="GATEWAY_")


class MonitoringSettings(BaseSettings):
    """Monitoring and observability settings."""
    # Prometheus
    metrics_port: int = Field(default=9090, description="Prometheus metrics port")
    metrics_path: str = Field(default="/metrics", description="Prometheus metrics path")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format (json or text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")

    model_config = SettingsConfigDict(env_prefix="MONITORING_")


class Settings(BaseSettings):
    """Main settings class combining all service settings."""
    # Environment
    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Environment")
    service_name: str = Field(default="reservegate", description="Service name")
    api_port: int = Field(default=8020, description="HTTP port for the gateway API")

    # Sub-settings
    kafka: KafkaSettings = Field(default_factory=KafkaSettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()
