"""Chain-facing value types shared by the facade and the services."""

from dataclasses import dataclass
from enum import Enum


class TransactionState(Enum):
    """Observed lifecycle state of a broadcast transaction."""

    UNSEEN = "unseen"
    PENDING = "pending"
    MINED_SUCCESS = "mined_success"
    MINED_REVERTED = "mined_reverted"


@dataclass(frozen=True)
class TransferCall:
    """Parameters of an ERC-20 ``transfer`` call before gas is fixed."""

    token_address: str
    sender: str
    recipient: str
    amount: int
    gas_price: int | None = None


@dataclass(frozen=True)
class CallParams:
    """Exact parameters of a broadcast call, replayable with ``eth_call``."""

    to: str
    sender: str
    data: str
    gas: int
    gas_price: int | None = None
    value: int = 0


@dataclass(frozen=True)
class SubmittedTransfer:
    """A transfer accepted by the network."""

    tx_hash: str
    call: CallParams


@dataclass(frozen=True)
class ChainTransaction:
    """A transaction as returned by ``eth_getTransactionByHash``."""

    tx_hash: str
    block_number: int | None


@dataclass(frozen=True)
class TransactionReceipt:
    """The authoritative outcome of a mined transaction."""

    tx_hash: str
    status: int
    block_number: int
    gas_used: int

    @property
    def succeeded(self) -> bool:
        return self.status == 1
