"""Forced gas allowance that guarantees a mined-but-reverted transfer."""

MINIMAL_GAS_LIMIT = 45_000


def forced_gas_limit(estimate: int | None) -> int:
    """Return a gas limit one unit below the estimate.

    ``None`` means estimation failed; the fixed minimal limit is used, which
    is too low for a standard ERC-20 transfer.
    """
    if estimate is None:
        return MINIMAL_GAS_LIMIT
    if estimate > 1:
        return estimate - 1
    return 1
