"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from transfer_monitor.domain.transfers import TransferRequest

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    rpc_url: str | None = None
    private_key: str | None = None
    token_address: str | None = None
    recipient: str | None = None
    amount: str | None = None
    gas_price_gwei: str | None = None
    gas_limit: str | None = None
    poll_interval_seconds: float = 5.0
    rpc_timeout_seconds: float = 30.0
    session_retention_seconds: float = 60.0
    explorer_tx_url: str = "https://etherscan.io/tx/{tx_hash}"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def resolve_transfer_request(
    overrides: dict[str, str | None], settings: Settings
) -> TransferRequest:
    """Merge request fields over process-wide defaults.

    Empty strings count as absent so a blank form field falls back to the
    default.
    """

    def pick(name: str) -> str | None:
        value = overrides.get(name)
        if value is not None and value.strip():
            return value.strip()
        return getattr(settings, name)

    return TransferRequest(
        rpc_url=pick("rpc_url"),
        private_key=pick("private_key"),
        token_address=pick("token_address"),
        recipient=pick("recipient"),
        amount=pick("amount"),
        gas_price_gwei=pick("gas_price_gwei"),
        gas_limit=pick("gas_limit"),
    )
