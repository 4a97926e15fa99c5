"""Orchestration of a single forced-revert token transfer."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from eth_account.signers.local import LocalAccount

from transfer_monitor.adapters.chain_client import (
    ChainClient,
    ChainConnector,
    derive_account,
)
from transfer_monitor.domain.chain import TransactionState, TransferCall
from transfer_monitor.domain.errors import (
    BroadcastFailure,
    ChainClientError,
    ConfigurationMissing,
    ConnectionFailure,
    ConversionFailure,
    CredentialInvalid,
    MonitoringFailure,
    TransferError,
)
from transfer_monitor.domain.events import LogEvent, LogLevel
from transfer_monitor.domain.transfers import BestEffort, TransferRequest
from transfer_monitor.domain.units import GWEI_DECIMALS, format_units, parse_units
from transfer_monitor.services.gas import forced_gas_limit
from transfer_monitor.services.monitor import LifecycleMonitor
from transfer_monitor.services.sessions import SessionRegistry, TransferSession

T = TypeVar("T")

DEFAULT_SYMBOL = "token"
DEFAULT_DECIMALS = 18

_logger = logging.getLogger(__name__)


async def read_best_effort(
    read: Callable[[], Awaitable[T]], default: T
) -> BestEffort[T]:
    """Run a soft-fail chain read, falling back to ``default`` on failure."""
    try:
        return BestEffort(await read())
    except ChainClientError as exc:
        return BestEffort(default, fallback_reason=str(exc))


def _to_base_units(value: str, decimals: int, label: str) -> int:
    try:
        return parse_units(value, decimals)
    except ValueError as exc:
        raise ConversionFailure(f"{label}: {exc}") from exc


@dataclass
class TransferService:
    """Runs transfer attempts as background tasks bound to sessions.

    Every attempt ends with exactly one completion of its session. Failures
    are reported as one error event; nothing propagates out of the task.
    """

    connector: ChainConnector
    registry: SessionRegistry
    poll_interval_seconds: float = 5.0
    explorer_tx_url: str = "https://etherscan.io/tx/{tx_hash}"
    _tasks: set[asyncio.Task] = field(default_factory=set, init=False, repr=False)

    def submit(self, request: TransferRequest) -> TransferSession:
        """Create a session and start the attempt without waiting for it."""
        session = self.registry.create()
        task = asyncio.create_task(
            self.run(request, session), name=f"transfer-{session.id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return session

    async def run(self, request: TransferRequest, session: TransferSession) -> None:
        """Run one attempt to its terminal state and complete the session."""
        try:
            await self._execute(request, session)
        except TransferError as exc:
            _logger.info(
                "Transfer failed: session_id=%s error=%s",
                session.id,
                type(exc).__name__,
            )
            self._report(session, str(exc))
        except Exception as exc:
            _logger.exception("Unexpected transfer failure: session_id=%s", session.id)
            self._report(session, f"Unexpected error: {exc}")
        finally:
            self.registry.complete(session)

    async def shutdown(self) -> None:
        """Cancel attempts still running when the application stops."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _report(self, session: TransferSession, message: str) -> None:
        self.registry.append(session, LogEvent(level=LogLevel.ERROR, message=message))

    @property
    def active_tasks(self) -> int:
        return len(self._tasks)

    async def _execute(
        self, request: TransferRequest, session: TransferSession
    ) -> None:
        missing = request.missing_fields()
        if missing:
            raise ConfigurationMissing(missing)

        session.log(LogLevel.INFO, "Initializing provider and wallet...")
        try:
            client = await self.connector.connect(str(request.rpc_url))
        except ChainClientError as exc:
            raise ConnectionFailure(f"Failed to connect to RPC: {exc}") from exc
        try:
            await self._transfer(request, session, client)
        finally:
            try:
                await client.close()
            except Exception:  # noqa: BLE001
                _logger.warning("Failed to close chain client", exc_info=True)

    async def _transfer(
        self,
        request: TransferRequest,
        session: TransferSession,
        client: ChainClient,
    ) -> TransactionState:
        account = self._load_account(str(request.private_key))
        session.log(LogLevel.INFO, f"Using sender address: {account.address}")

        token_address = str(request.token_address)
        symbol = await read_best_effort(
            lambda: client.token_symbol(token_address), DEFAULT_SYMBOL
        )
        if symbol.degraded:
            session.log(LogLevel.WARN, "Could not fetch token symbol; continuing.")
        decimals = await read_best_effort(
            lambda: client.token_decimals(token_address), DEFAULT_DECIMALS
        )
        if decimals.degraded:
            session.log(
                LogLevel.WARN,
                f"Could not fetch token decimals; defaulting to {DEFAULT_DECIMALS}.",
            )

        amount = _to_base_units(str(request.amount), decimals.value, "Invalid amount")
        gas_price = None
        if request.gas_price_gwei:
            gas_price = _to_base_units(
                request.gas_price_gwei, GWEI_DECIMALS, "Invalid gas price"
            )

        if request.gas_limit:
            session.log(
                LogLevel.WARN,
                "Ignoring provided gas limit: the dashboard intentionally "
                "underfunds gas to force a revert.",
            )

        call = TransferCall(
            token_address=token_address,
            sender=account.address,
            recipient=str(request.recipient),
            amount=amount,
            gas_price=gas_price,
        )
        gas_limit = await self._force_gas_limit(session, client, call)

        session.log(
            LogLevel.INFO,
            f"Broadcasting {request.amount} {symbol.value} to {request.recipient}...",
        )
        if gas_price is not None:
            session.log(
                LogLevel.INFO,
                f"Custom gas price: {format_units(gas_price, GWEI_DECIMALS)} gwei",
            )
        session.log(LogLevel.INFO, f"Forced gas limit: {gas_limit}")

        try:
            submitted = await client.send_transfer(account, call, gas_limit)
        except ChainClientError as exc:
            raise BroadcastFailure(f"Failed to send transaction: {exc}") from exc
        _logger.info(
            "Transfer broadcast: session_id=%s tx_hash=%s",
            session.id,
            submitted.tx_hash,
        )
        session.log(
            LogLevel.SUCCESS, f"Transaction submitted. Hash: {submitted.tx_hash}"
        )

        monitor = LifecycleMonitor(
            client=client,
            poll_interval_seconds=self.poll_interval_seconds,
            explorer_tx_url=self.explorer_tx_url,
        )
        try:
            return await monitor.watch(session, submitted)
        except Exception as exc:
            raise MonitoringFailure(
                f"Error while monitoring transaction: {exc}"
            ) from exc

    @staticmethod
    def _load_account(private_key: str) -> LocalAccount:
        try:
            return derive_account(private_key)
        except Exception as exc:
            raise CredentialInvalid(f"Invalid private key: {exc}") from exc

    @staticmethod
    async def _force_gas_limit(
        session: TransferSession, client: ChainClient, call: TransferCall
    ) -> int:
        try:
            estimate = await client.estimate_transfer_gas(call)
        except ChainClientError as exc:
            limit = forced_gas_limit(None)
            session.log(
                LogLevel.WARN,
                f"Gas estimation failed ({exc}). Falling back to minimal gas "
                f"limit {limit} to trigger failure.",
            )
            return limit
        limit = forced_gas_limit(estimate)
        session.log(
            LogLevel.WARN,
            f"Intentionally setting gas limit to {limit} (below estimated "
            f"{estimate}) to guarantee failure.",
        )
        return limit
