"""
Static Rate Source - Fixed USD-anchored snapshot used when live lookups fail.

The table is rebased arithmetically to any requested base: every entry is
divided by the table's value for that base. Unknown codes never raise:
an unknown base divides by 1 and an unknown target reads as 1. Each such
default is logged and reported to the on_default() callbacks.
"""

import logging
import time
from datetime import date
from decimal import Decimal
from typing import Callable, Optional

from fx_rates.base import BaseRateSource
from fx_rates.models import (
    ExchangeRate,
    RateSnapshot,
    SourceMetadata,
)


logger = logging.getLogger(__name__)


ANCHOR_CURRENCY = "USD"

STATIC_USD_RATES: dict[str, Decimal] = {
    "USD": Decimal("1.0"),
    "EUR": Decimal("0.85"),
    "GBP": Decimal("0.73"),
    "JPY": Decimal("110.33"),
    "AUD": Decimal("1.35"),
    "CAD": Decimal("1.25"),
    "CHF": Decimal("0.92"),
    "NZD": Decimal("1.42"),
}


DefaultCallback = Callable[[str, str], None]


class StaticRateSource(BaseRateSource):
    """
    Deterministic offline rate source.

    Never touches the network and never raises for unknown codes, so the
    RateProvider can always end its fallback chain here.
    """

    def __init__(
        self,
        usd_rates: Optional[dict[str, Decimal]] = None,
    ) -> None:
        super().__init__()
        self._usd_rates = dict(usd_rates if usd_rates is not None else STATIC_USD_RATES)
        self._on_default_callbacks: list[DefaultCallback] = []

    @property
    def name(self) -> str:
        """Unique identifier."""
        return "static_table"

    def metadata(self) -> SourceMetadata:
        """Return provider metadata."""
        return SourceMetadata(
            name=self.name,
            is_live=False,
            priority=999,
        )

    def on_default(self, callback: DefaultCallback) -> None:
        """Register callback fired as (table, code) when a code silently defaults to 1."""
        self._on_default_callbacks.append(callback)

    def rebased_rates(self, base: str) -> dict[str, Decimal]:
        """Every table entry expressed against `base`."""
        rates = dict(self._usd_rates)
        if base == ANCHOR_CURRENCY:
            return rates

        base_rate = self._usd_rates.get(base)
        if base_rate is None:
            self._default_used("base", base)
            base_rate = Decimal(1)

        rebased = {
            code: value / base_rate
            for code, value in rates.items()
            if code != base
        }
        rebased[base] = Decimal(1)
        return rebased

    def rate(self, base: str, target: str) -> ExchangeRate:
        """Synchronous lookup; the fallback path of RateProvider uses this directly."""
        rates = self.rebased_rates(base)
        value = rates.get(target)
        if value is None:
            self._default_used("target", target)
            value = Decimal(1)

        return ExchangeRate(
            base=base,
            target=target,
            rate=value,
            timestamp=time.time(),
            date=date.today().isoformat(),
            is_live=False,
            source_name=self.name,
        )

    def snapshot(self, base: str) -> RateSnapshot:
        """Synchronous snapshot of the rebased table."""
        return RateSnapshot(
            base=base,
            rates=self.rebased_rates(base),
            timestamp=time.time(),
            date=date.today().isoformat(),
            is_live=False,
            source_name=self.name,
        )

    async def fetch_rate(self, base: str, target: str) -> ExchangeRate:
        """Static rate between two currencies."""
        return self.rate(base, target)

    async def fetch_rates(self, base: str) -> RateSnapshot:
        """Static snapshot for a base currency."""
        return self.snapshot(base)

    def _default_used(self, table: str, code: str) -> None:
        logger.warning(f"[{self.name}] Unknown {table} currency '{code}', defaulting to rate 1")
        for callback in self._on_default_callbacks:
            try:
                callback(table, code)
            except Exception as e:
                logger.error(f"Default callback error: {e}")
