"""Polling state machine that follows a broadcast transaction until mined."""

import asyncio
import logging
from dataclasses import dataclass

from transfer_monitor.adapters.chain_client import ChainClient
from transfer_monitor.domain.chain import (
    ChainTransaction,
    SubmittedTransfer,
    TransactionReceipt,
    TransactionState,
)
from transfer_monitor.domain.events import LogLevel
from transfer_monitor.services.revert import fetch_revert_reason
from transfer_monitor.services.sessions import TransferSession

_logger = logging.getLogger(__name__)

_TRANSIENT_EVENTS = {
    TransactionState.UNSEEN: (
        LogLevel.WARN,
        "Transaction not yet found in mempool "
        "(it may still be propagating or was dropped).",
    ),
    TransactionState.PENDING: (LogLevel.INFO, "Transaction is still pending."),
}


def classify(transaction: ChainTransaction | None) -> TransactionState | None:
    """Map an unmined lookup to a transient state.

    A transaction that already carries a block number while its receipt is
    not yet indexed maps to ``None``: no state change is reported.
    """
    if transaction is None:
        return TransactionState.UNSEEN
    if transaction.block_number is None:
        return TransactionState.PENDING
    return None


@dataclass
class LifecycleMonitor:
    """Polls a chain client until a transaction is mined.

    There is no retry cap and no timeout: the loop ends only when a receipt
    appears. Transient states are reported once per contiguous run, so a
    flicker such as pending, not found, pending reports each change.
    """

    client: ChainClient
    poll_interval_seconds: float = 5.0
    explorer_tx_url: str = "https://etherscan.io/tx/{tx_hash}"

    async def watch(
        self, session: TransferSession, transfer: SubmittedTransfer
    ) -> TransactionState:
        """Poll until mined and return the terminal state."""
        _logger.info(
            "Monitoring transaction: session_id=%s tx_hash=%s",
            session.id,
            transfer.tx_hash,
        )
        last_state: TransactionState | None = None
        while True:
            receipt = await self.client.get_receipt(transfer.tx_hash)
            if receipt is not None:
                return await self._report_mined(session, transfer, receipt)

            state = classify(await self.client.get_transaction(transfer.tx_hash))
            if state is not None and state is not last_state:
                level, message = _TRANSIENT_EVENTS[state]
                session.log(level, message)
                last_state = state

            await asyncio.sleep(self.poll_interval_seconds)

    async def _report_mined(
        self,
        session: TransferSession,
        transfer: SubmittedTransfer,
        receipt: TransactionReceipt,
    ) -> TransactionState:
        if receipt.succeeded:
            state = TransactionState.MINED_SUCCESS
            session.log(
                LogLevel.SUCCESS,
                f"Transaction confirmed in block {receipt.block_number}.",
            )
        else:
            state = TransactionState.MINED_REVERTED
            session.log(LogLevel.ERROR, "Transaction was mined but reverted.")
            reason = await fetch_revert_reason(
                self.client, transfer.call, receipt.block_number
            )
            if reason:
                session.log(LogLevel.ERROR, f"Revert reason: {reason}")
        session.log(LogLevel.INFO, f"Gas used: {receipt.gas_used}")
        session.log(
            LogLevel.INFO,
            f"View on block explorer: {self.explorer_link(transfer.tx_hash)}",
        )
        _logger.info(
            "Transaction mined: tx_hash=%s block=%s state=%s",
            transfer.tx_hash,
            receipt.block_number,
            state.value,
        )
        return state

    def explorer_link(self, tx_hash: str) -> str:
        return self.explorer_tx_url.format(tx_hash=tx_hash)
