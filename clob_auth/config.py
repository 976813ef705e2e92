"""
Configuration management for the CLOB auth client.

Loads settings from environment variables with validation and resolves the
exchange contracts that orders are signed against.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ContractConfig
from .exceptions import ConfigurationError

POLYGON = 137
AMOY = 80002


class ClobSettings(BaseSettings):
    """
    CLOB client settings.

    Loads from environment variables with POLYMARKET_ prefix.
    """
    model_config = SettingsConfigDict(
        env_prefix="POLYMARKET_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # API URL
    clob_url: str = Field(
        default="https://clob.polymarket.com",
        description="CLOB API URL"
    )

    # Chain configuration
    chain_id: int = Field(default=POLYGON, description="Polygon chain ID")
    exchange_address: Optional[str] = Field(
        None, description="CTF exchange contract (overrides built-in table)"
    )
    neg_risk_exchange_address: Optional[str] = Field(
        None, description="Neg-risk CTF exchange contract (overrides built-in table)"
    )

    # Timeouts
    request_timeout: float = Field(default=30.0, ge=1.0, description="Request timeout (seconds)")
    connect_timeout: float = Field(default=10.0, ge=1.0, description="Connection timeout (seconds)")

    # Auth freshness
    auth_timestamp_tolerance: int = Field(
        default=30, ge=1, description="Max age of L2 header timestamps (seconds)"
    )
    use_server_time: bool = Field(
        default=False, description="Offset local clock by the server's /time"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_requests: bool = Field(default=False, description="Log all HTTP requests")

    # Metrics
    enable_metrics: bool = Field(default=True, description="Enable Prometheus metrics")

    def __repr__(self) -> str:
        """Safe repr without sensitive data."""
        return (
            f"ClobSettings("
            f"clob_url={self.clob_url}, "
            f"chain_id={self.chain_id}, "
            f"use_server_time={self.use_server_time}"
            ")"
        )


# Contract addresses per chain
# Source: py-clob-client config.py
CONTRACT_CONFIGS = {
    (POLYGON, False): ContractConfig(exchange="0x4bFb41d5B3570DeFd03C39a9A4D8dE6Bd8B8982E"),
    (POLYGON, True): ContractConfig(exchange="0xC5d563A36AE78145C45a50134d48A1215220f80a"),
    (AMOY, False): ContractConfig(exchange="0xdFE02Eb6733538f8Ea35D585af8DE5958AD99E40"),
    (AMOY, True): ContractConfig(exchange="0xC5d563A36AE78145C45a50134d48A1215220f80a"),
}


def get_settings() -> ClobSettings:
    """
    Get CLOB settings.

    Returns:
        Validated settings instance
    """
    return ClobSettings()


def get_contract_config(
    chain_id: int,
    neg_risk: bool = False,
    exchange_override: Optional[str] = None
) -> ContractConfig:
    """
    Resolve exchange contracts for a chain.

    Args:
        chain_id: Chain ID the orders settle on
        neg_risk: Use the neg-risk exchange
        exchange_override: Explicit verifying contract (wins over the table)

    Returns:
        Contract configuration

    Raises:
        ConfigurationError: If the chain is unknown and no override is given
    """
    if exchange_override:
        return ContractConfig(exchange=exchange_override)

    config = CONTRACT_CONFIGS.get((chain_id, neg_risk))
    if config is None:
        raise ConfigurationError(
            f"No exchange contract known for chain_id={chain_id} (neg_risk={neg_risk}). "
            f"Set POLYMARKET_EXCHANGE_ADDRESS explicitly."
        )

    return config
