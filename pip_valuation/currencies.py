"""
Currency and currency pair reference tables.

The built-in tables cover the eight major currencies and 28 pairs
(majors and crosses). They are read-only; a different set can be loaded
through pip_valuation.reference.ReferenceData.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional


@dataclass(frozen=True)
class Currency:
    """A currency as shown to the user."""
    code: str
    name: str
    symbol: str

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "name": self.name, "symbol": self.symbol}


@dataclass(frozen=True)
class CurrencyPair:
    """
    A tradable pair "BASE/QUOTE".

    `pip_value` is the numeric size of one pip (0.0001, or 0.01 for JPY
    quoted pairs) and `pip_decimal_place` the decimal it sits on.
    """
    symbol: str
    base_currency: str
    quote_currency: str
    pip_decimal_place: int
    pip_value: Decimal

    def __post_init__(self) -> None:
        if self.pip_decimal_place < 0:
            raise ValueError(f"{self.symbol}: pip_decimal_place must be >= 0")
        if self.pip_value <= 0:
            raise ValueError(f"{self.symbol}: pip_value must be positive")

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "base_currency": self.base_currency,
            "quote_currency": self.quote_currency,
            "pip_decimal_place": self.pip_decimal_place,
            "pip_value": str(self.pip_value),
        }


def _pair(base: str, quote: str) -> CurrencyPair:
    # JPY-quoted pairs move on the second decimal
    if quote == "JPY":
        return CurrencyPair(f"{base}/{quote}", base, quote, 2, Decimal("0.01"))
    return CurrencyPair(f"{base}/{quote}", base, quote, 4, Decimal("0.0001"))


MAJOR_CURRENCIES: tuple[Currency, ...] = (
    Currency("USD", "US Dollar", "$"),
    Currency("EUR", "Euro", "€"),
    Currency("GBP", "British Pound", "£"),
    Currency("JPY", "Japanese Yen", "¥"),
    Currency("AUD", "Australian Dollar", "A$"),
    Currency("CAD", "Canadian Dollar", "C$"),
    Currency("CHF", "Swiss Franc", "Fr"),
    Currency("NZD", "New Zealand Dollar", "NZ$"),
)

CURRENCY_PAIRS: tuple[CurrencyPair, ...] = (
    _pair("EUR", "USD"),
    _pair("GBP", "USD"),
    _pair("USD", "JPY"),
    _pair("USD", "CHF"),
    _pair("USD", "CAD"),
    _pair("AUD", "USD"),
    _pair("NZD", "USD"),
    _pair("EUR", "GBP"),
    _pair("EUR", "JPY"),
    _pair("GBP", "JPY"),
    _pair("AUD", "JPY"),
    _pair("EUR", "AUD"),
    _pair("GBP", "AUD"),
    _pair("AUD", "CAD"),
    _pair("AUD", "CHF"),
    _pair("AUD", "NZD"),
    _pair("CAD", "CHF"),
    _pair("CAD", "JPY"),
    _pair("CHF", "JPY"),
    _pair("EUR", "CAD"),
    _pair("EUR", "CHF"),
    _pair("EUR", "NZD"),
    _pair("GBP", "CAD"),
    _pair("GBP", "CHF"),
    _pair("GBP", "NZD"),
    _pair("NZD", "CAD"),
    _pair("NZD", "CHF"),
    _pair("NZD", "JPY"),
)


def get_currency_by_code(
    code: str,
    currencies: Iterable[Currency] = MAJOR_CURRENCIES,
) -> Optional[Currency]:
    """Currency with the given code, or None."""
    for currency in currencies:
        if currency.code == code:
            return currency
    return None


def get_currency_pair_by_symbol(
    symbol: str,
    pairs: Iterable[CurrencyPair] = CURRENCY_PAIRS,
) -> Optional[CurrencyPair]:
    """Pair with the given symbol, or None."""
    for pair in pairs:
        if pair.symbol == symbol:
            return pair
    return None


def get_all_currency_codes(currencies: Iterable[Currency] = MAJOR_CURRENCIES) -> list[str]:
    return [currency.code for currency in currencies]
