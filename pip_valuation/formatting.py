"""
Display formatting for calculation results.
"""

from decimal import ROUND_HALF_EVEN, Decimal
from typing import Iterable, Union

from pip_valuation.currencies import MAJOR_CURRENCIES, Currency, get_currency_by_code


Number = Union[int, float, Decimal]


def _quantize(value: Number, decimals: int) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_EVEN)


def format_number(value: Number, decimals: int = 2) -> str:
    """Thousands-separated number with a fixed number of decimals: 1,234.56."""
    return f"{_quantize(value, decimals):,.{decimals}f}"


def format_currency(
    value: Number,
    currency_code: str,
    decimals: int = 2,
    currencies: Iterable[Currency] = MAJOR_CURRENCIES,
) -> str:
    """
    Amount with its currency symbol: $1,234.56, -€10.00.

    Currencies missing from the table are prefixed with their code: "SEK 5.00".
    """
    amount = _quantize(value, decimals)
    currency = get_currency_by_code(currency_code, currencies)
    prefix = currency.symbol if currency else f"{currency_code} "

    sign = "-" if amount < 0 else ""
    return f"{sign}{prefix}{abs(amount):,.{decimals}f}"
