"""
Configuration loader using Pydantic Settings.
Loads environment variables from .env file.
"""

from typing import Dict, FrozenSet, Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from services.trade_policy import TradePolicy


DEFAULT_BLOCKED_TOKENS = ",".join([
    "4Cnk9EPnW5ixfLZatCPJjDB1PUtcRpVVgTQukm9epump",
    "FUAfBo2jgks6gB4Z4LfZkqSZgzNucisEHqnNebaRxM1P",
])


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Hookdeck (verification is skipped when empty)
    hookdeck_signing_secret: str = Field(default="", description="Hookdeck signing secret")

    @property
    def signing_configured(self) -> bool:
        """Check if webhook signature verification is enabled."""
        return bool(self.hookdeck_signing_secret)

    # Wallet
    private_key: str = Field(default="", description="Base58 encoded wallet secret key")
    user_public_key: str = Field(
        default="",
        description="Wallet public key sent to swap APIs (derived from private_key if empty)"
    )

    # Solana RPC
    rpc_url: str = Field(
        default="https://api.mainnet-beta.solana.com",
        description="Solana JSON-RPC endpoint"
    )

    # Swap APIs
    swap_route: Literal["auto", "pump", "jupiter"] = Field(
        default="auto",
        description="auto = pump-fun for *pump mints, Jupiter otherwise"
    )
    pump_swap_url: str = Field(default="https://public.jupiterapi.com/pump-fun/swap")
    jupiter_quote_url: str = Field(default="https://quote-api.jup.ag/v6/quote")
    jupiter_swap_url: str = Field(default="https://quote-api.jup.ag/v6/swap")
    usdc_mint: str = Field(default="EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v")
    slippage_bps: int = Field(default=5000, ge=0, le=10000)

    # HTTP
    http_timeout: float = Field(default=30.0, description="Timeout for outbound HTTP calls (seconds)")

    # OCR
    ocr_enabled: bool = Field(default=True, description="Run OCR on attached images")
    ocr_language: str = Field(default="eng", description="Tesseract language code")

    # Addresses that are never traded (comma-separated in env)
    blocked_tokens: str = Field(default=DEFAULT_BLOCKED_TOKENS)

    @property
    def block_list(self) -> FrozenSet[str]:
        """Lowercased block list for case-insensitive lookups."""
        return frozenset(
            token.strip().lower() for token in self.blocked_tokens.split(",") if token.strip()
        )

    # Trade sizing: default policy plus per-user overrides (JSON in env)
    default_trade_policy: TradePolicy = Field(default_factory=TradePolicy)
    trade_policies: Dict[str, TradePolicy] = Field(default_factory=dict)

    # API (Render uses PORT env var)
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=10000, alias="PORT", description="API port")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        populate_by_name = True


# Global settings instance
settings = Settings()
