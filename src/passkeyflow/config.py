"""Application configuration using pydantic-settings.

Read once at startup and handed to the orchestrator at construction.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

AIRDROP_NETWORKS = ("devnet", "testnet")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")
    dry_run: bool = Field(
        default=True,
        description="Use simulated ledger, aggregator and wallet (no real transactions)",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="127.0.0.1", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Ledger RPC
    # ======================
    network: str = Field(default="devnet", description="devnet, testnet or mainnet-beta")
    rpc_url: str = Field(
        default="https://api.devnet.solana.com", description="Solana JSON-RPC endpoint"
    )
    rpc_commitment: str = Field(default="confirmed", description="RPC commitment level")
    rpc_timeout_seconds: float = Field(default=15.0, description="RPC request timeout")
    confirm_timeout_seconds: float = Field(
        default=90.0, description="How long to wait for an airdrop to confirm"
    )

    # ======================
    # Aggregator
    # ======================
    aggregator_url: str = Field(
        default="https://quote-api.jup.ag/v6", description="Jupiter aggregator base URL"
    )
    aggregator_api_key: Optional[str] = Field(
        default=None, description="Optional aggregator API key for higher rate limits"
    )
    aggregator_timeout_seconds: float = Field(default=30.0, description="Aggregator timeout")
    max_slippage_bps: int = Field(default=50, description="Maximum swap slippage (0.5%)")
    direct_routes_only: bool = Field(default=True, description="Only request direct routes")

    # ======================
    # Token asset
    # ======================
    token_symbol: str = Field(default="USDC", description="Token asset symbol")
    token_mint: str = Field(
        default="4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU",
        description="Token mint address (devnet USDC by default)",
    )
    token_decimals: int = Field(default=6, description="Token decimal exponent")

    # ======================
    # Payments & fees
    # ======================
    merchant_address: Optional[str] = Field(
        default=None, description="Merchant address for payments (unset disables payments)"
    )
    fee_mode: str = Field(default="paymaster", description="Smart wallet fee mode")
    fee_asset: str = Field(default="USDC", description="Asset used to pay transaction fees")

    # ======================
    # Refresh scheduling
    # ======================
    refresh_cooldown_ms: int = Field(
        default=10_000, description="Minimum interval between user refreshes"
    )
    refresh_interval_ms: int = Field(default=60_000, description="Periodic refresh interval")
    resync_delay_ms: int = Field(
        default=3_000, description="Delay before re-reading balances after a submission"
    )
    history_limit: int = Field(default=5, description="Recent signatures to keep")
    airdrop_lamports: int = Field(default=1_000_000_000, description="Airdrop size (1 SOL)")

    @property
    def has_merchant(self) -> bool:
        """Check if a merchant address is configured."""
        return bool(self.merchant_address and self.merchant_address.strip())

    @property
    def supports_airdrop(self) -> bool:
        """Test funds are only available off mainnet."""
        return self.network.lower() in AIRDROP_NETWORKS

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "network": self.network,
            "rpc_url": self.rpc_url,
            "aggregator": {
                "url": self.aggregator_url,
                "api_key": "***" if self.aggregator_api_key else "(not set)",
                "max_slippage_bps": self.max_slippage_bps,
                "direct_routes_only": self.direct_routes_only,
            },
            "token": {
                "symbol": self.token_symbol,
                "mint": self.token_mint,
                "decimals": self.token_decimals,
            },
            "merchant_configured": self.has_merchant,
            "fees": {"mode": self.fee_mode, "asset": self.fee_asset},
            "refresh": {
                "cooldown_ms": self.refresh_cooldown_ms,
                "interval_ms": self.refresh_interval_ms,
                "resync_delay_ms": self.resync_delay_ms,
                "history_limit": self.history_limit,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
