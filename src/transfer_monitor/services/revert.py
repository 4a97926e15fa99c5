"""Best-effort recovery of human-readable revert reasons."""

from typing import Protocol

from eth_abi import decode as abi_decode

from transfer_monitor.domain.chain import CallParams
from transfer_monitor.domain.errors import CallReverted, ChainClientError

ERROR_STRING_SELECTOR = "0x08c379a0"
UNKNOWN_FAILURE = "Transaction failed with an unknown error."


class CallSimulator(Protocol):
    """Subset of the chain client able to replay a call at a block."""

    async def simulate_call(self, call: CallParams, block_number: int) -> None:
        """Run ``eth_call`` against a historical block."""


def describe_revert(data: str | bytes | None, message: str | None = None) -> str:
    """Turn revert data or an error message into a readable reason.

    Never raises.
    """
    if isinstance(data, bytes | bytearray):
        data = "0x" + bytes(data).hex()
    if isinstance(data, str) and data.lower().startswith(ERROR_STRING_SELECTOR):
        try:
            (reason,) = abi_decode(["string"], bytes.fromhex(data[10:]))
        except Exception as exc:  # noqa: BLE001
            return f"Failed to decode revert reason: {exc}"
        return str(reason)
    if isinstance(data, str) and data:
        return f"Reverted with data: {data}"
    return message or UNKNOWN_FAILURE


async def fetch_revert_reason(
    client: CallSimulator, call: CallParams, block_number: int
) -> str | None:
    """Replay a mined call at its block and describe why it failed.

    Returns ``None`` if the replay unexpectedly succeeds.
    """
    try:
        await client.simulate_call(call, block_number)
    except CallReverted as exc:
        return describe_revert(exc.data, exc.message)
    except ChainClientError as exc:
        return describe_revert(None, str(exc))
    return None
