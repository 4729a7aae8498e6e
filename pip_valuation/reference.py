"""
Reference data bundle: currencies, currency pairs and lot sizes.

Defaults come from the built-in tables. A YAML file can replace any of
the three sections:

    currencies:
      - {code: USD, name: US Dollar, symbol: "$"}
    currency_pairs:
      - {symbol: EUR/USD, base_currency: EUR, quote_currency: USD,
         pip_decimal_place: 4, pip_value: 0.0001}
    lot_sizes:
      STANDARD: 100000
      MINI: 10000

Sections left out keep their built-in values. Entries under lot_sizes
are merged over the built-in table, so lot types the file omits keep
their standard unit counts.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from pip_valuation.currencies import (
    CURRENCY_PAIRS,
    MAJOR_CURRENCIES,
    Currency,
    CurrencyPair,
)
from pip_valuation.exceptions import ReferenceDataError
from pip_valuation.lot_sizes import LOT_SIZES, LotType, parse_lot_type


logger = logging.getLogger(__name__)


@dataclass
class ReferenceData:
    """Static tables the valuator reads from."""
    currencies: tuple[Currency, ...] = MAJOR_CURRENCIES
    currency_pairs: tuple[CurrencyPair, ...] = CURRENCY_PAIRS
    lot_sizes: dict[LotType, int] = field(default_factory=lambda: dict(LOT_SIZES))

    def pairs_by_symbol(self) -> dict[str, CurrencyPair]:
        return {pair.symbol: pair for pair in self.currency_pairs}

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "ReferenceData":
        """
        Load reference data from a YAML file.

        Raises:
            ReferenceDataError: Unreadable file or malformed entries
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ReferenceDataError(f"Cannot read reference data: {e}", path=str(path)) from e

        if not isinstance(data, dict):
            raise ReferenceDataError("Reference data must be a mapping", path=str(path))

        reference = cls.from_dict(data, source=str(path))
        logger.info(
            f"Loaded reference data from {path}: {len(reference.currencies)} currencies, "
            f"{len(reference.currency_pairs)} pairs"
        )
        return reference

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: Optional[str] = None) -> "ReferenceData":
        """Build from an already parsed mapping."""
        reference = cls()

        if "currencies" in data:
            reference.currencies = tuple(
                _parse_currency(entry, source) for entry in _as_list(data, "currencies", source)
            )

        if "currency_pairs" in data:
            reference.currency_pairs = tuple(
                _parse_pair(entry, source) for entry in _as_list(data, "currency_pairs", source)
            )

        if "lot_sizes" in data:
            reference.lot_sizes = {**LOT_SIZES, **_parse_lot_sizes(data["lot_sizes"], source)}

        return reference


def _as_list(data: dict[str, Any], key: str, source: Optional[str]) -> list[Any]:
    value = data[key]
    if not isinstance(value, list):
        raise ReferenceDataError(f"'{key}' must be a list", path=source, field_name=key)
    return value


def _parse_currency(entry: Any, source: Optional[str]) -> Currency:
    try:
        return Currency(
            code=str(entry["code"]),
            name=str(entry.get("name", entry["code"])),
            symbol=str(entry.get("symbol", entry["code"])),
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise ReferenceDataError(f"Invalid currency entry {entry!r}", path=source, field_name="currencies") from e


def _parse_pair(entry: Any, source: Optional[str]) -> CurrencyPair:
    try:
        return CurrencyPair(
            symbol=str(entry["symbol"]),
            base_currency=str(entry["base_currency"]),
            quote_currency=str(entry["quote_currency"]),
            pip_decimal_place=int(entry["pip_decimal_place"]),
            pip_value=Decimal(str(entry["pip_value"])),
        )
    except (KeyError, TypeError, AttributeError, ValueError, InvalidOperation) as e:
        raise ReferenceDataError(
            f"Invalid currency pair entry {entry!r}: {e}",
            path=source,
            field_name="currency_pairs",
        ) from e


def _parse_lot_sizes(value: Any, source: Optional[str]) -> dict[LotType, int]:
    if not isinstance(value, dict):
        raise ReferenceDataError("'lot_sizes' must be a mapping", path=source, field_name="lot_sizes")

    sizes: dict[LotType, int] = {}
    for name, units in value.items():
        lot_type = parse_lot_type(name)
        if lot_type is None or lot_type is LotType.CUSTOM:
            raise ReferenceDataError(f"Unknown lot type '{name}'", path=source, field_name="lot_sizes")
        if isinstance(units, bool) or not isinstance(units, int) or units <= 0:
            raise ReferenceDataError(
                f"Lot size for '{name}' must be a positive integer",
                path=source,
                field_name="lot_sizes",
            )
        sizes[lot_type] = units
    return sizes
