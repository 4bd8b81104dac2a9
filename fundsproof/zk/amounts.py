"""
Amount Normalization
====================

Single point of truth for turning caller amounts into canonical base-unit
integers (as decimal strings). Every threshold/maximum comparison runs on
the output of ``normalize_amount``, never on raw input.

Rules:
    - integers, integer-valued floats and ``0x`` hex strings are already
      base units and pass through
    - ``"W.F"`` becomes ``W`` followed by ``F`` padded or truncated to
      ``decimals`` digits
    - leading zeros are stripped

Version: 0.1.0
"""

import math
import re

from fundsproof.zk.errors import ErrorCode, InputError


MAX_DECIMALS = 18

_DECIMAL = re.compile(r"^([0-9]+)(?:\.([0-9]+))?$")
_HEX = re.compile(r"^0[xX][0-9a-fA-F]+$")


def _invalid(amount: object, reason: str, field: str) -> InputError:
    return InputError(
        f"Invalid amount format for {field}: {reason}",
        code=ErrorCode.INVALID_AMOUNT_FORMAT,
        field=field,
        details={"value": str(amount)},
    )


def normalize_amount(
    amount: str | int | float,
    decimals: int = 18,
    field: str = "amount",
) -> str:
    """
    Convert an amount to its canonical base-unit representation.

    Args:
        amount: Decimal string, integer or hex string
        decimals: Token decimals (0-18)
        field: Name reported in errors

    Returns:
        Base-unit integer as a decimal string, e.g. ``"10050"``

    Raises:
        InputError: INVALID_AMOUNT_FORMAT for non-numeric, negative or
            partially empty input, or decimals outside 0..18
    """
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise _invalid(decimals, "decimals must be an integer", "decimals")
    if not 0 <= decimals <= MAX_DECIMALS:
        raise _invalid(decimals, f"decimals must be within 0..{MAX_DECIMALS}", "decimals")

    if isinstance(amount, bool):
        raise _invalid(amount, "booleans are not amounts", field)

    if isinstance(amount, int):
        if amount < 0:
            raise _invalid(amount, "must not be negative", field)
        return str(amount)

    if isinstance(amount, float):
        if not math.isfinite(amount):
            raise _invalid(amount, "must be finite", field)
        if amount < 0:
            raise _invalid(amount, "must not be negative", field)
        if amount.is_integer():
            return str(int(amount))
        amount = repr(amount)

    if not isinstance(amount, str):
        raise _invalid(amount, f"unsupported type {type(amount).__name__}", field)

    text = amount.strip()
    if not text:
        raise _invalid(amount, "empty value", field)
    if text.startswith("-"):
        raise _invalid(amount, "must not be negative", field)

    if _HEX.match(text):
        return str(int(text, 16))

    match = _DECIMAL.match(text)
    if match is None:
        raise _invalid(amount, "not a decimal number", field)

    whole, fraction = match.groups()
    if fraction is None:
        return str(int(whole))

    scaled_fraction = fraction[:decimals].ljust(decimals, "0")
    return str(int(whole + scaled_fraction))


def compare_amounts(left: str, right: str) -> int:
    """
    Compare two canonical amounts as big integers.

    Returns -1, 0 or 1.
    """
    a, b = int(left), int(right)
    return (a > b) - (a < b)
