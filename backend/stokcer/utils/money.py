"""
Money utilities - Decimal arithmetic and locale-aware currency formatting.

Prices are stored as floats in major units; totals are summed as Decimal so
repeated additions do not drift.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

Number = Union[str, int, float, Decimal, None]

MONEY_PRECISION = Decimal("0.01")
INTEGER_PRECISION = Decimal("1")

# Currencies displayed without fraction digits
INTEGER_CURRENCIES = {"IDR", "JPY", "KRW", "VND"}

CURRENCY_SYMBOLS = {
    "IDR": "Rp",
    "USD": "$",
    "EUR": "€",
    "SGD": "S$",
    "MYR": "RM",
    "JPY": "¥",
}

# (group separator, decimal separator)
LOCALE_SEPARATORS = {
    "id-ID": (".", ","),
    "de-DE": (".", ","),
    "en-US": (",", "."),
    "en-GB": (",", "."),
}


def to_decimal(value: Number) -> Decimal:
    """
    Convert any value to Decimal safely.

    Returns Decimal("0") for None or unparseable input.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def to_minor_units(value: Number) -> int:
    """Convert a major-unit amount to integer minor units (cents)."""
    return int((to_decimal(value) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(minor: Number) -> Decimal:
    """Convert minor units (cents) to a major-unit Decimal."""
    return to_decimal(minor) / Decimal(100)


def round_money(value: Number, to_int: bool = False) -> Decimal:
    """Round a monetary value to cents, or to whole units when to_int is set."""
    precision = INTEGER_PRECISION if to_int else MONEY_PRECISION
    return to_decimal(value).quantize(precision, rounding=ROUND_HALF_UP)


def to_float(value: Number) -> float:
    """Convert to float for JSON responses and external APIs."""
    return float(to_decimal(value))


def format_money(value: Number, currency: str = "IDR", locale: str = "id-ID") -> str:
    """
    Format a monetary value with its currency symbol.

    Examples:
        format_money(20000) -> "Rp 20.000"
        format_money(12.5, "USD", "en-US") -> "$12.50"
    """
    currency = currency.upper()
    is_integer = currency in INTEGER_CURRENCIES
    rounded = round_money(value, to_int=is_integer)
    group_sep, decimal_sep = LOCALE_SEPARATORS.get(locale, (",", "."))

    places = 0 if is_integer else 2
    digits = f"{abs(rounded):,.{places}f}"
    # Swap separators through a placeholder so "," and "." do not collide
    digits = digits.replace(",", "\0").replace(".", decimal_sep).replace("\0", group_sep)

    sign = "-" if rounded < 0 else ""
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    if symbol[-1].isalpha():
        return f"{sign}{symbol} {digits}"
    return f"{sign}{symbol}{digits}"
