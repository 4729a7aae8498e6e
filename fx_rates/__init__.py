"""
FX Rates Package - Exchange-rate acquisition with static fallback.

Features:
- Live rates from exchangerate.host (/convert, then /latest on a malformed reply)
- One attempt per source, bounded by a 10 second timeout
- Deterministic USD-anchored static table when every live path fails
- Live/estimated flag carried on every returned record

Quick Start:
    from fx_rates import create_rate_provider

    async def quote():
        async with create_rate_provider() as provider:
            rate = await provider.resolve_rate("JPY", "USD")
            print(rate.rate, "live" if rate.is_live else "estimated")

Adding New Providers:
    1. Create class extending BaseRateSource
    2. Implement: fetch_rate(), fetch_rates(), metadata()
    3. Register with RateProvider
"""

from fx_rates.base import BaseRateSource
from fx_rates.exceptions import (
    FetchError,
    NoAvailableSourceError,
    NormalizationError,
    RateSourceError,
)
from fx_rates.models import (
    ExchangeRate,
    RateSnapshot,
    SourceHealth,
    SourceIncident,
    SourceMetadata,
    SourceStatus,
)
from fx_rates.providers import (
    STATIC_USD_RATES,
    ExchangeRateHostSource,
    StaticRateSource,
)
from fx_rates.registry import RateProvider, create_rate_provider


__version__ = "1.0.0"

__all__ = [
    # Base
    "BaseRateSource",

    # Models
    "ExchangeRate",
    "RateSnapshot",
    "SourceHealth",
    "SourceMetadata",
    "SourceIncident",
    "SourceStatus",

    # Exceptions
    "RateSourceError",
    "FetchError",
    "NormalizationError",
    "NoAvailableSourceError",

    # Providers
    "ExchangeRateHostSource",
    "StaticRateSource",
    "STATIC_USD_RATES",

    # Provider
    "RateProvider",
    "create_rate_provider",
]
