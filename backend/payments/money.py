"""
Integer money helpers for order totals, discounts and payments.

Every money value in the engine is an int in currency minor units (cents).
Decimal is only used for intermediate products (rate x amount) and is
rounded back to an int immediately.

Key Principles:
1. NEVER use float for money
2. Round ROUND_HALF_UP on minor units (0.5 cent rounds away from zero)
3. Allocate remainder cents deterministically so shares sum exactly
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Union

BASIS_POINTS = 10000

# Currency minor unit exponents (how many decimal places)
CURRENCY_EXPONENT = {
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "CAD": 2,
    "AUD": 2,
    "CHF": 2,
    "INR": 2,
    "MXN": 2,
    "PHP": 2,
    # Zero-decimal currencies
    "JPY": 0,
    "KRW": 0,
    "VND": 0,
    "CLP": 0,
    # 3-decimal currencies
    "KWD": 3,
    "BHD": 3,
    "JOD": 3,
}


def currency_exponent(currency: str) -> int:
    """
    Get the number of decimal places for a currency.

    Examples:
        >>> currency_exponent("USD")
        2
        >>> currency_exponent("JPY")
        0
    """
    return CURRENCY_EXPONENT.get(currency.upper(), 2)


def round_half_up(amount: Union[Decimal, int, str]) -> int:
    """
    Round a Decimal amount of minor units to an int, half away from zero.

    Examples:
        >>> round_half_up(Decimal("102.5"))
        103
        >>> round_half_up(Decimal("102.49"))
        102
    """
    return int(Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def apply_rate(amount_minor: int, rate: Union[Decimal, str]) -> int:
    """
    Multiply minor units by a fractional rate (0.05 = 5%) and round.

    Examples:
        >>> apply_rate(2000, Decimal("0.05"))
        100
        >>> apply_rate(1050, Decimal("0.05"))
        53
    """
    return round_half_up(Decimal(amount_minor) * Decimal(str(rate)))


def apply_basis_points(amount_minor: int, basis_points: int) -> int:
    """
    Take basis points of an amount (1000 bp = 10%) and round.

    Examples:
        >>> apply_basis_points(2000, 1000)
        200
        >>> apply_basis_points(1005, 1000)
        101
    """
    return round_half_up(Decimal(amount_minor) * Decimal(basis_points) / BASIS_POINTS)


def from_minor(currency: str, minor: int) -> Decimal:
    """
    Convert from minor units to Decimal (for display).

    Examples:
        >>> from_minor("USD", 1013)
        Decimal('10.13')
    """
    exponent = currency_exponent(currency)
    return Decimal(minor) / (10 ** exponent)


def split_evenly(total_minor: int, parts: int) -> List[int]:
    """
    Split an amount into equal shares; the first share absorbs the remainder.

    Examples:
        >>> split_evenly(1000, 3)
        [334, 333, 333]
    """
    if parts < 1:
        raise ValueError("parts must be at least 1")
    base, remainder = divmod(total_minor, parts)
    return [base + remainder] + [base] * (parts - 1)


def validate_minor_sum(
    components: List[int],
    expected_total: int,
    context: str = "",
) -> None:
    """
    Validate that sum of components equals expected total.

    Raises ValueError on mismatch.
    """
    actual = sum(components)
    diff = actual - expected_total

    if diff:
        sign = "+" if diff > 0 else ""
        raise ValueError(
            f"Minor unit sum mismatch{' ' + context if context else ''}: "
            f"expected {expected_total}, got {actual} "
            f"(diff: {sign}{diff})"
        )


def format_money(currency: str, minor: int) -> str:
    """
    Format minor units as human-readable currency string.

    Examples:
        >>> format_money("USD", 1013)
        '$10.13'
        >>> format_money("JPY", 1235)
        '¥1,235'
    """
    amount = from_minor(currency, minor)

    symbols = {
        "USD": "$",
        "EUR": "€",
        "GBP": "£",
        "JPY": "¥",
        "INR": "₹",
        "KRW": "₩",
        "PHP": "₱",
    }

    symbol = symbols.get(currency.upper(), currency.upper() + " ")
    exponent = currency_exponent(currency)
    return f"{symbol}{amount:,.{exponent}f}"
