"""
Amount conversion between caller input, Decimal and the stored form.

Balances and record amounts are written to the store as fixed-point
strings ("70.00", "-30.00") so no float rounding ever enters a balance.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

AmountLike = Union[Decimal, int, float, str]

ZERO = Decimal("0")


class AmountError(ValueError):
    """Value cannot be read as a finite decimal amount."""
    pass


def to_decimal(value: AmountLike) -> Decimal:
    """
    Convert caller input to a finite Decimal.

    Floats go through repr() so 0.1 becomes Decimal("0.1"),
    not the binary approximation.
    """
    if isinstance(value, bool):
        raise AmountError(f"Not an amount: {value!r}")

    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, int):
            result = Decimal(value)
        elif isinstance(value, float):
            result = Decimal(repr(value))
        elif isinstance(value, str):
            if "," in value:
                # "1,000" and "12,50" are both plausible; refuse to guess
                raise AmountError(f"Ambiguous separator in amount: {value!r}")
            cleaned = "".join(value.split()).replace("_", "")
            result = Decimal(cleaned)
        else:
            raise AmountError(f"Not an amount: {value!r}")
    except InvalidOperation:
        raise AmountError(f"Not an amount: {value!r}")

    if not result.is_finite():
        raise AmountError(f"Amount must be finite: {value!r}")
    return result


def parse_amount(value: AmountLike | None) -> Decimal:
    """Parse a stored amount. Missing or blank values count as zero."""
    if value is None:
        return ZERO
    if isinstance(value, str) and not value.strip():
        return ZERO
    return to_decimal(value)


def format_amount(amount: Decimal, places: int = 2) -> str:
    """
    Format a Decimal for storage, e.g. Decimal("70") -> "70.00".

    places is a minimum: an amount that already carries more digits keeps
    them all ("9.005" stays "9.005"), so writing a balance never rounds.
    """
    exponent = amount.as_tuple().exponent
    digits = max(places, -exponent) if isinstance(exponent, int) else places
    return str(amount.quantize(Decimal(1).scaleb(-digits)))
