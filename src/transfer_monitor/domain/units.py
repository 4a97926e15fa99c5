"""Decimal unit conversion helpers."""

import re
from decimal import Decimal, localcontext

GWEI_DECIMALS = 9
MAX_UINT256 = 2**256 - 1
_PRECISION = 100
_PLAIN_DECIMAL = re.compile(r"(?P<whole>[0-9]*)(?:\.(?P<fraction>[0-9]*))?")


def parse_units(value: str, decimals: int) -> int:
    """Convert a human decimal string into integer base units.

    Only plain non-negative decimals such as ``"12"``, ``"0.5"`` or ``".5"``
    are accepted; exponents, signs and digit separators are not. Raises
    ``ValueError`` when the value is malformed, carries more significant
    fractional digits than ``decimals`` allows, or does not fit in a uint256.
    """
    text = value.strip()
    match = _PLAIN_DECIMAL.fullmatch(text)
    if match is None or not text.strip("."):
        raise ValueError(f"invalid decimal value {value!r}")
    whole = match.group("whole") or "0"
    fraction = (match.group("fraction") or "").rstrip("0")
    if len(fraction) > decimals:
        raise ValueError(
            f"too many decimal places for {decimals} decimals: {value!r}"
        )
    units = int(whole) * 10**decimals + int(fraction.ljust(decimals, "0") or "0")
    if units > MAX_UINT256:
        raise ValueError(f"value out of range for uint256: {value!r}")
    return units


def format_units(value: int, decimals: int) -> str:
    """Render integer base units as a human decimal string."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return format(Decimal(value).scaleb(-decimals).normalize(), "f")
