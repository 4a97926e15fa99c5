"""EVM chain client facade backed by web3.py."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Protocol

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.contract.async_contract import AsyncContract
from web3.exceptions import ContractLogicError, TransactionNotFound

from transfer_monitor.adapters.erc20 import ERC20_ABI
from transfer_monitor.domain.chain import (
    CallParams,
    ChainTransaction,
    SubmittedTransfer,
    TransactionReceipt,
    TransferCall,
)
from transfer_monitor.domain.errors import (
    CallReverted,
    ChainClientError,
    EstimationFailure,
)


class ChainClient(Protocol):
    """Read and broadcast operations against one RPC endpoint."""

    async def token_symbol(self, token_address: str) -> str:
        """Return the token's display symbol."""

    async def token_decimals(self, token_address: str) -> int:
        """Return the token's decimal precision."""

    async def estimate_transfer_gas(self, call: TransferCall) -> int:
        """Estimate gas for a transfer; raises ``EstimationFailure``."""

    async def send_transfer(
        self, account: LocalAccount, call: TransferCall, gas_limit: int
    ) -> SubmittedTransfer:
        """Sign and broadcast a transfer with a fixed gas limit."""

    async def get_receipt(self, tx_hash: str) -> TransactionReceipt | None:
        """Return the receipt, or ``None`` while the transaction is unmined."""

    async def get_transaction(self, tx_hash: str) -> ChainTransaction | None:
        """Return the transaction, or ``None`` if the node does not know it."""

    async def simulate_call(self, call: CallParams, block_number: int) -> None:
        """Replay a call at a block; raises ``CallReverted`` on failure."""

    async def close(self) -> None:
        """Release transport resources."""


class ChainConnector(Protocol):
    """Factory that opens a chain client for an RPC endpoint."""

    async def connect(self, rpc_url: str) -> ChainClient:
        """Connect to an endpoint; raises ``ChainClientError`` if unreachable."""


def derive_account(private_key: str) -> LocalAccount:
    """Load a signing account from a hex private key."""
    return Account.from_key(private_key)


@contextmanager
def _rpc_errors(
    error_type: type[ChainClientError] = ChainClientError,
) -> Iterator[None]:
    try:
        yield
    except ChainClientError:
        raise
    except Exception as exc:
        raise error_type(str(exc) or type(exc).__name__) from exc


@dataclass
class Web3ChainClient:
    """Chain client implemented with ``AsyncWeb3``."""

    web3: AsyncWeb3

    def _token(self, token_address: str) -> AsyncContract:
        return self.web3.eth.contract(
            address=Web3.to_checksum_address(token_address), abi=ERC20_ABI
        )

    async def token_symbol(self, token_address: str) -> str:
        """Call ``symbol()`` on the token contract."""
        with _rpc_errors():
            return str(await self._token(token_address).functions.symbol().call())

    async def token_decimals(self, token_address: str) -> int:
        """Call ``decimals()`` on the token contract."""
        with _rpc_errors():
            return int(await self._token(token_address).functions.decimals().call())

    async def estimate_transfer_gas(self, call: TransferCall) -> int:
        """Estimate gas for ``transfer(recipient, amount)`` from the sender."""
        with _rpc_errors(EstimationFailure):
            function = self._token(call.token_address).functions.transfer(
                Web3.to_checksum_address(call.recipient), call.amount
            )
            fields: dict[str, Any] = {"from": Web3.to_checksum_address(call.sender)}
            if call.gas_price is not None:
                fields["gasPrice"] = call.gas_price
            return int(await function.estimate_gas(fields))

    async def send_transfer(
        self, account: LocalAccount, call: TransferCall, gas_limit: int
    ) -> SubmittedTransfer:
        """Build, sign locally and broadcast a transfer."""
        with _rpc_errors():
            function = self._token(call.token_address).functions.transfer(
                Web3.to_checksum_address(call.recipient), call.amount
            )
            nonce = await self.web3.eth.get_transaction_count(account.address)
            fields: dict[str, Any] = {
                "from": account.address,
                "gas": gas_limit,
                "nonce": nonce,
            }
            if call.gas_price is not None:
                fields["gasPrice"] = call.gas_price
            tx = await function.build_transaction(fields)
            signed = account.sign_transaction(tx)
            tx_hash = await self.web3.eth.send_raw_transaction(signed.raw_transaction)
        params = CallParams(
            to=tx["to"],
            sender=account.address,
            data=tx["data"],
            gas=int(tx["gas"]),
            gas_price=tx.get("gasPrice"),
            value=int(tx.get("value", 0)),
        )
        return SubmittedTransfer(tx_hash=Web3.to_hex(tx_hash), call=params)

    async def get_receipt(self, tx_hash: str) -> TransactionReceipt | None:
        """Fetch the receipt for a transaction hash."""
        with _rpc_errors():
            try:
                receipt = await self.web3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                return None
        if receipt is None:
            return None
        return TransactionReceipt(
            tx_hash=tx_hash,
            status=int(receipt["status"]),
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
        )

    async def get_transaction(self, tx_hash: str) -> ChainTransaction | None:
        """Fetch a transaction by hash from the node's view of the mempool."""
        with _rpc_errors():
            try:
                tx = await self.web3.eth.get_transaction(tx_hash)
            except TransactionNotFound:
                return None
        if tx is None:
            return None
        block_number = tx.get("blockNumber")
        return ChainTransaction(
            tx_hash=tx_hash,
            block_number=int(block_number) if block_number is not None else None,
        )

    async def simulate_call(self, call: CallParams, block_number: int) -> None:
        """Run ``eth_call`` with the submitted call parameters at ``block_number``."""
        request: dict[str, Any] = {
            "to": call.to,
            "from": call.sender,
            "data": call.data,
            "gas": call.gas,
            "value": call.value,
        }
        if call.gas_price is not None:
            request["gasPrice"] = call.gas_price
        try:
            await self.web3.eth.call(request, block_identifier=block_number)
        except ContractLogicError as exc:
            data = getattr(exc, "data", None)
            raise CallReverted(
                message=getattr(exc, "message", None) or str(exc),
                data=data if isinstance(data, str) else None,
            ) from exc
        except Exception as exc:
            raise CallReverted(message=str(exc) or type(exc).__name__) from exc

    async def close(self) -> None:
        await self.web3.provider.disconnect()


@dataclass
class Web3ChainConnector:
    """Opens ``Web3ChainClient`` instances over HTTP JSON-RPC."""

    request_timeout: float = 30.0

    async def connect(self, rpc_url: str) -> Web3ChainClient:
        """Create a provider for ``rpc_url`` and check it answers."""
        with _rpc_errors():
            web3 = AsyncWeb3(
                AsyncWeb3.AsyncHTTPProvider(
                    rpc_url, request_kwargs={"timeout": self.request_timeout}
                )
            )
            connected = await web3.is_connected()
        if not connected:
            raise ChainClientError(f"RPC endpoint {rpc_url} is not responding")
        return Web3ChainClient(web3)
