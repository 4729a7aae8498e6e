"""
Providers package - Rate source implementations.
"""

from fx_rates.providers.exchangerate_host import ExchangeRateHostSource
from fx_rates.providers.static_table import (
    STATIC_USD_RATES,
    StaticRateSource,
)


__all__ = [
    "ExchangeRateHostSource",
    "StaticRateSource",
    "STATIC_USD_RATES",
]
