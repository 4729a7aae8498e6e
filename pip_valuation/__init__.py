"""
Pip Valuation Package - Pip values of forex positions.

Converts a position (currency pair, lot size, pip count) into pip values
in the pair's quote currency and in the account currency.

Quick Start:
    from pip_valuation import create_valuator

    async def value():
        async with create_valuator() as valuator:
            units = valuator.convert_lot_to_units("STANDARD", 1)
            result = await valuator.calculate_pip_value("USD/JPY", units, 10, "USD")
            print(result.pip_value_in_account_currency, result.is_live_rate)
"""

from pip_valuation.calculator import (
    PipCalculationResult,
    PipValuator,
    calculate_pip_value,
    calculate_position_size,
    convert_lot_to_units,
    create_valuator,
    get_pip_decimal_place,
    to_decimal,
)
from pip_valuation.config import (
    CalculatorConfig,
    RateServiceConfig,
    get_config,
    set_config,
)
from pip_valuation.currencies import (
    CURRENCY_PAIRS,
    MAJOR_CURRENCIES,
    Currency,
    CurrencyPair,
    get_all_currency_codes,
    get_currency_by_code,
    get_currency_pair_by_symbol,
)
from pip_valuation.exceptions import (
    CurrencyPairNotFoundError,
    NonPositiveDivisorError,
    PipValuationError,
    ReferenceDataError,
)
from pip_valuation.formatting import format_currency, format_number
from pip_valuation.lot_sizes import (
    LOT_SIZE_LABELS,
    LOT_SIZES,
    LotSizeStore,
    LotType,
    get_default_lot_store,
    get_lot_units,
    update_lot_size,
)
from pip_valuation.reference import ReferenceData


__version__ = "1.0.0"

__all__ = [
    # Calculator
    "PipCalculationResult",
    "PipValuator",
    "calculate_pip_value",
    "calculate_position_size",
    "convert_lot_to_units",
    "create_valuator",
    "get_pip_decimal_place",
    "to_decimal",

    # Configuration
    "CalculatorConfig",
    "RateServiceConfig",
    "get_config",
    "set_config",

    # Reference data
    "Currency",
    "CurrencyPair",
    "MAJOR_CURRENCIES",
    "CURRENCY_PAIRS",
    "get_currency_by_code",
    "get_currency_pair_by_symbol",
    "get_all_currency_codes",
    "ReferenceData",

    # Lot sizes
    "LotType",
    "LOT_SIZES",
    "LOT_SIZE_LABELS",
    "LotSizeStore",
    "get_default_lot_store",
    "get_lot_units",
    "update_lot_size",

    # Formatting
    "format_currency",
    "format_number",

    # Exceptions
    "PipValuationError",
    "CurrencyPairNotFoundError",
    "NonPositiveDivisorError",
    "ReferenceDataError",
]
