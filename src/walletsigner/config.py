"""Application configuration using pydantic-settings.

The signer is driven by a single root secret (mnemonic + operator passphrase)
and the public keys of the two counterparties that authorize signing requests.
Settings are constructed once at startup and handed to every component.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Signer settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Root secret
    # ======================
    mnemonic: Optional[str] = Field(
        default=None, description="BIP-39 mnemonic used for all key derivation"
    )
    signer_passphrase: Optional[str] = Field(
        default=None,
        description="BIP-39 passphrase (prompted at startup when not set)",
    )

    # ======================
    # Counterparty public keys
    # ======================
    risk_public_key: str = Field(
        default="", description="Risk-control service Ed25519 public key (hex)"
    )
    wallet_public_key: str = Field(
        default="", description="Wallet service Ed25519 public key (hex)"
    )
    signature_tolerance_ms: int = Field(
        default=60_000, description="Allowed clock distance for request timestamps"
    )

    # ======================
    # Database
    # ======================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./signer.db",
        description="Database connection URL for address records",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=3001, description="API server port")
    signer_device: str = Field(
        default="signer_device1", description="Device name reported with new addresses"
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_mnemonic(self) -> bool:
        """Check if a mnemonic of plausible length is configured."""
        return bool(self.mnemonic and len(self.mnemonic.split()) >= 12)

    @property
    def has_counterparty_keys(self) -> bool:
        return bool(self.risk_public_key and self.wallet_public_key)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "database_url": self._redact_url(self.database_url),
            "signer_device": self.signer_device,
            "mnemonic_configured": self.has_mnemonic,
            "passphrase_configured": bool(self.signer_passphrase),
            "authorization": {
                "risk_public_key": self.risk_public_key or "(not set)",
                "wallet_public_key": self.wallet_public_key or "(not set)",
                "tolerance_ms": self.signature_tolerance_ms,
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


def load_settings(**overrides) -> Settings:
    """Build a settings instance from the environment.

    Called once by the entry point; the result is passed explicitly to the
    components that need it.
    """
    return Settings(**overrides)
