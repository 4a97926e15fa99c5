"""Domain models for transfer requests."""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

_REQUIRED_FIELDS = {
    "rpc_url": "RPC_URL",
    "private_key": "PRIVATE_KEY",
    "token_address": "TOKEN_ADDRESS",
    "recipient": "RECIPIENT",
    "amount": "AMOUNT",
}


@dataclass(frozen=True)
class TransferRequest:
    """Resolved configuration for a single transfer attempt."""

    rpc_url: str | None = None
    private_key: str | None = None
    token_address: str | None = None
    recipient: str | None = None
    amount: str | None = None
    gas_price_gwei: str | None = None
    gas_limit: str | None = None

    def missing_fields(self) -> list[str]:
        """Return environment names of mandatory fields that are absent."""
        return [
            env_name
            for attr, env_name in _REQUIRED_FIELDS.items()
            if not getattr(self, attr)
        ]


@dataclass(frozen=True)
class BestEffort(Generic[T]):
    """A value from a soft-fail read, marked when a default was used."""

    value: T
    fallback_reason: str | None = None

    @property
    def degraded(self) -> bool:
        return self.fallback_reason is not None
