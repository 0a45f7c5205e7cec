# =============================================================================
# lib/money.py - Money Arithmetic Helpers
# =============================================================================
# Balances are stored as JSON numbers but all arithmetic in the services
# happens on Decimal values quantized to cents, so repeated adds and
# subtracts never drift the way floats do.
#
# Usage:
#   from lib.money import to_decimal, to_amount
#   new_balance = to_decimal(wallet["real_balance"]) + to_decimal(request.amount)
#   update = {"real_balance": to_amount(new_balance)}
# =============================================================================

from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP
from typing import Any, Iterable

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Any) -> Decimal:
    """
    Convert a stored or requested amount to a quantized Decimal.

    None and empty strings count as zero. Floats go through str() so
    0.1 stays 0.1 instead of its binary expansion.

    Raises:
        ValueError: If the value isn't numeric
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        decimal_value = value
    else:
        try:
            decimal_value = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"Not a valid amount: {value!r}") from e
    if not decimal_value.is_finite():
        raise ValueError(f"Not a valid amount: {value!r}")
    return decimal_value.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_amount(value: Decimal) -> float:
    """Quantized Decimal -> float for JSON columns."""
    return float(to_decimal(value))


def sum_amounts(rows: Iterable[dict[str, Any]], field: str = "amount") -> Decimal:
    """Sum one numeric column over a list of rows."""
    total = ZERO
    for row in rows:
        total += to_decimal(row.get(field))
    return total


def percent(part: Decimal, whole: Decimal) -> float:
    """part / whole as a percentage rounded to 2 places; 0 when whole is 0."""
    if whole == 0:
        return 0.0
    return float((part / whole * 100).quantize(CENTS, rounding=ROUND_HALF_UP))


def split_proportionally(total: Decimal, weights: list[Decimal]) -> list[Decimal]:
    """
    Split `total` across `weights` proportionally.

    Largest-remainder rounding: every share starts as its exact value
    rounded down to cents, then the leftover cents go one at a time to the
    shares with the biggest remainders (earlier weights win ties). Shares
    are never negative and always add up to exactly `total`.
    """
    total = to_decimal(total)
    weight_sum = sum(weights, ZERO)
    if not weights or weight_sum <= 0 or total <= 0:
        return []

    exact = [total * weight / weight_sum if weight > 0 else ZERO for weight in weights]
    shares = [value.quantize(CENTS, rounding=ROUND_DOWN) for value in exact]

    leftover_cents = int((total - sum(shares, ZERO)) / CENTS)
    by_remainder = sorted(range(len(weights)), key=lambda i: (-(exact[i] - shares[i]), i))
    for index in by_remainder[:leftover_cents]:
        shares[index] += CENTS
    return shares
