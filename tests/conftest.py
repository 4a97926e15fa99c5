"""Shared test fixtures."""

from dataclasses import dataclass, field

import pytest
from eth_account.signers.local import LocalAccount

from transfer_monitor.adapters.chain_client import ChainClient
from transfer_monitor.config import Settings
from transfer_monitor.containers import AppContainer
from transfer_monitor.domain.chain import (
    CallParams,
    ChainTransaction,
    SubmittedTransfer,
    TransactionReceipt,
    TransferCall,
)
from transfer_monitor.domain.errors import CallReverted, ChainClientError
from transfer_monitor.domain.transfers import TransferRequest
from transfer_monitor.services.sessions import SessionRegistry
from transfer_monitor.services.transfers import TransferService

# Well-known development key (Hardhat/Anvil account #0).
PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
SENDER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
TOKEN = "0x" + "11" * 20
RECIPIENT = "0x" + "22" * 20
TX_HASH = "0x" + "aa" * 32

TimelineEntry = TransactionReceipt | ChainTransaction | None


def pending(block_number: int | None = None) -> ChainTransaction:
    return ChainTransaction(tx_hash=TX_HASH, block_number=block_number)


def mined(status: int = 1, block_number: int = 100, gas_used: int = 20999):
    return TransactionReceipt(
        tx_hash=TX_HASH, status=status, block_number=block_number, gas_used=gas_used
    )


@dataclass
class FakeChainClient(ChainClient):
    """Scripted chain client; each poll tick consumes one timeline entry."""

    symbol: str | Exception = "TKN"
    decimals: int | Exception = 6
    estimate: int | Exception = 21001
    send_error: Exception | None = None
    receipt_error: Exception | None = None
    revert: CallReverted | None = None
    timeline: list[TimelineEntry] = field(default_factory=lambda: [mined()])
    tick: int = 0
    estimated: list[TransferCall] = field(default_factory=list)
    sent: list[tuple[str, TransferCall, int]] = field(default_factory=list)
    simulated: list[tuple[CallParams, int]] = field(default_factory=list)
    closed: bool = False

    async def token_symbol(self, token_address: str) -> str:
        if isinstance(self.symbol, Exception):
            raise self.symbol
        return self.symbol

    async def token_decimals(self, token_address: str) -> int:
        if isinstance(self.decimals, Exception):
            raise self.decimals
        return self.decimals

    async def estimate_transfer_gas(self, call: TransferCall) -> int:
        self.estimated.append(call)
        if isinstance(self.estimate, Exception):
            raise self.estimate
        return self.estimate

    async def send_transfer(
        self, account: LocalAccount, call: TransferCall, gas_limit: int
    ) -> SubmittedTransfer:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((account.address, call, gas_limit))
        params = CallParams(
            to=call.token_address,
            sender=account.address,
            data="0xa9059cbb",
            gas=gas_limit,
            gas_price=call.gas_price,
        )
        return SubmittedTransfer(tx_hash=TX_HASH, call=params)

    async def get_receipt(self, tx_hash: str) -> TransactionReceipt | None:
        if self.receipt_error is not None:
            raise self.receipt_error
        entry = self._current()
        return entry if isinstance(entry, TransactionReceipt) else None

    async def get_transaction(self, tx_hash: str) -> ChainTransaction | None:
        entry = self._current()
        self.tick += 1
        return entry if isinstance(entry, ChainTransaction) else None

    async def simulate_call(self, call: CallParams, block_number: int) -> None:
        self.simulated.append((call, block_number))
        if self.revert is not None:
            raise self.revert

    async def close(self) -> None:
        self.closed = True

    def _current(self) -> TimelineEntry:
        if not self.timeline:
            return None
        return self.timeline[min(self.tick, len(self.timeline) - 1)]


@dataclass
class FakeChainConnector:
    """Connector returning a fixed client, or failing."""

    client: FakeChainClient
    error: ChainClientError | None = None
    urls: list[str] = field(default_factory=list)

    async def connect(self, rpc_url: str) -> FakeChainClient:
        self.urls.append(rpc_url)
        if self.error is not None:
            raise self.error
        return self.client


def messages(events) -> list[str]:
    return [event.message for event in events]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        rpc_url=None,
        private_key=None,
        token_address=None,
        recipient=None,
        amount=None,
        gas_price_gwei=None,
        gas_limit=None,
        poll_interval_seconds=0,
    )


@pytest.fixture
def transfer_request() -> TransferRequest:
    return TransferRequest(
        rpc_url="http://localhost:8545",
        private_key=PRIVATE_KEY,
        token_address=TOKEN,
        recipient=RECIPIENT,
        amount="1.5",
    )


@pytest.fixture
def chain_client() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def connector(chain_client: FakeChainClient) -> FakeChainConnector:
    return FakeChainConnector(client=chain_client)


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def transfer_service(
    connector: FakeChainConnector, registry: SessionRegistry
) -> TransferService:
    return TransferService(
        connector=connector,
        registry=registry,
        poll_interval_seconds=0,
    )


@pytest.fixture
def container(
    settings: Settings,
    registry: SessionRegistry,
    transfer_service: TransferService,
) -> AppContainer:
    async def close_resources() -> None:
        await transfer_service.shutdown()

    return AppContainer(
        settings=settings,
        session_registry=registry,
        transfer_service=transfer_service,
        close_resources=close_resources,
    )
