"""Tests for the web3.py chain client adapter."""

import asyncio

import pytest
from web3.exceptions import TransactionNotFound

from tests.conftest import PRIVATE_KEY, SENDER, TX_HASH
from transfer_monitor.adapters.chain_client import Web3ChainClient, derive_account
from transfer_monitor.domain.chain import CallParams
from transfer_monitor.domain.errors import CallReverted, ChainClientError


class _StubEth:
    def __init__(
        self,
        receipt: dict | None = None,
        transaction: dict | None = None,
        error: Exception | None = None,
    ) -> None:
        self.receipt = receipt
        self.transaction = transaction
        self.error = error
        self.calls: list[tuple[dict, object]] = []

    async def get_transaction_receipt(self, tx_hash: str) -> dict:
        if self.error is not None:
            raise self.error
        if self.receipt is None:
            raise TransactionNotFound(f"Transaction with hash {tx_hash} not found")
        return self.receipt

    async def get_transaction(self, tx_hash: str) -> dict:
        if self.transaction is None:
            raise TransactionNotFound(f"Transaction with hash {tx_hash} not found")
        return self.transaction

    async def call(self, request: dict, block_identifier: object = None) -> bytes:
        self.calls.append((request, block_identifier))
        if self.error is not None:
            raise self.error
        return b""


class _StubProvider:
    def __init__(self) -> None:
        self.disconnected = False

    async def disconnect(self) -> None:
        self.disconnected = True


class _StubWeb3:
    def __init__(self, eth: _StubEth) -> None:
        self.eth = eth
        self.provider = _StubProvider()


def _client(eth: _StubEth) -> Web3ChainClient:
    return Web3ChainClient(web3=_StubWeb3(eth))  # type: ignore[arg-type]


def test_derive_account_from_private_key() -> None:
    assert derive_account(PRIVATE_KEY).address == SENDER


def test_get_receipt_returns_none_until_mined() -> None:
    assert asyncio.run(_client(_StubEth()).get_receipt(TX_HASH)) is None


def test_get_receipt_parses_outcome() -> None:
    eth = _StubEth(receipt={"status": 0, "blockNumber": 100, "gasUsed": 20999})

    receipt = asyncio.run(_client(eth).get_receipt(TX_HASH))

    assert receipt is not None
    assert receipt.block_number == 100
    assert receipt.gas_used == 20999
    assert not receipt.succeeded


def test_get_transaction_distinguishes_pending_and_unknown() -> None:
    unknown = asyncio.run(_client(_StubEth()).get_transaction(TX_HASH))
    pending = asyncio.run(
        _client(_StubEth(transaction={"blockNumber": None})).get_transaction(TX_HASH)
    )

    assert unknown is None
    assert pending is not None
    assert pending.block_number is None


def test_transport_errors_surface_as_chain_client_errors() -> None:
    eth = _StubEth(error=OSError("connection reset"))

    with pytest.raises(ChainClientError, match="connection reset"):
        asyncio.run(_client(eth).get_receipt(TX_HASH))


def test_simulate_call_replays_parameters_at_block() -> None:
    eth = _StubEth(error=RuntimeError("out of gas"))
    call = CallParams(
        to="0xtoken", sender=SENDER, data="0xa9059cbb", gas=21000, gas_price=7
    )

    with pytest.raises(CallReverted) as excinfo:
        asyncio.run(_client(eth).simulate_call(call, 100))

    assert excinfo.value.message == "out of gas"
    assert excinfo.value.data is None
    request, block = eth.calls[0]
    assert block == 100
    assert request["gas"] == 21000
    assert request["gasPrice"] == 7
    assert request["from"] == SENDER


def test_close_disconnects_provider() -> None:
    client = _client(_StubEth())

    asyncio.run(client.close())

    assert client.web3.provider.disconnected
