"""Application configuration using pydantic-settings.

Holds the initialization parameters of the exchange (assets, ratio, lock
duration, administrator) together with database, API and policy settings.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Fixed denominator of the exchange ratio: ratio == RATIO_SCALE means 1:1
RATIO_SCALE = 10_000_000_000


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Database
    # ======================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/burnswap.db",
        description="Database connection URL",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    # ======================
    # Relayer / Admin API
    # ======================
    admin_token: str = Field(
        default="", description="Token required on mutating API endpoints (empty = open)"
    )

    # ======================
    # Chain identity
    # ======================
    chain_id: int = Field(default=1, description="EVM chain ID used in permit signatures")
    engine_address: str = Field(
        default="0x000000000000000000000000000000000000bEEF",
        description="Address identifying the engine (permit spender, reserve holder)",
    )
    administrator_address: str = Field(
        default="0x0000000000000000000000000000000000000A11",
        description="Initial administrator of the exchange",
    )

    # ======================
    # Assets
    # ======================
    source_asset_address: str = Field(
        default="0x0000000000000000000000000000000000005001",
        description="Token surrendered and burned on exchange",
    )
    source_asset_name: str = Field(default="Source Token", description="EIP-712 name of source token")
    target_asset_address: str = Field(
        default="0x0000000000000000000000000000000000007A12",
        description="Token paid out from the reserve",
    )
    target_asset_name: str = Field(default="Target Token", description="EIP-712 name of target token")

    # ======================
    # Exchange parameters
    # ======================
    initial_ratio: int = Field(
        default=RATIO_SCALE, description="Initial ratio numerator over RATIO_SCALE"
    )
    lock_duration_seconds: int = Field(
        default=365 * 24 * 3600,
        description="Seconds after initialization before the reserve can be withdrawn",
    )

    # ======================
    # Policy (off by default)
    # ======================
    reject_zero_output: bool = Field(
        default=False, description="Reject exchanges whose target amount floors to zero"
    )
    min_ratio: Optional[int] = Field(default=None, description="Lower bound for set_ratio")
    max_ratio: Optional[int] = Field(default=None, description="Upper bound for set_ratio")

    # ======================
    # Concurrency
    # ======================
    lock_timeout: float = Field(
        default=30.0, description="Seconds to wait for the engine lock (0 = wait forever)"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "database_url": self._redact_url(self.database_url),
            "admin_token": "***" if self.admin_token else "(not set)",
            "chain_id": self.chain_id,
            "engine_address": self.engine_address,
            "assets": {
                "source": {"address": self.source_asset_address, "name": self.source_asset_name},
                "target": {"address": self.target_asset_address, "name": self.target_asset_name},
            },
            "policy": {
                "reject_zero_output": self.reject_zero_output,
                "min_ratio": self.min_ratio,
                "max_ratio": self.max_ratio,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact sensitive parts of database URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
