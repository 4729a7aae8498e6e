"""
Rate Provider - Registry of live rate sources with a static fallback.

Provides:
- Source registration in priority order
- Fallback from live sources to the static USD table
- Incident tracking and fallback callbacks for operator visibility
- No caller-side dependency on specific providers
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, Protocol

from fx_rates.base import BaseRateSource
from fx_rates.exceptions import NoAvailableSourceError
from fx_rates.models import (
    ExchangeRate,
    RateSnapshot,
    SourceIncident,
)
from fx_rates.providers.static_table import ANCHOR_CURRENCY, StaticRateSource


logger = logging.getLogger(__name__)


class PairLike(Protocol):
    """Anything carrying a pair symbol and its two currencies."""
    symbol: str
    base_currency: str
    quote_currency: str


class RateProvider:
    """
    Resolves exchange rates, never failing.

    Live sources are tried in priority order, one attempt each. When all of
    them fail the static table answers instead and the returned record has
    is_live=False.

    Usage:
        provider = RateProvider()
        provider.register(ExchangeRateHostSource())

        rate = await provider.resolve_rate("JPY", "USD")
    """

    def __init__(
        self,
        fallback: Optional[StaticRateSource] = None,
        max_incidents: int = 1000,
    ) -> None:
        self._sources: dict[str, BaseRateSource] = {}
        self._source_order: list[str] = []  # Priority order
        self._priorities: dict[str, int] = {}
        self._fallback = fallback or StaticRateSource()

        self._incidents: list[SourceIncident] = []
        self._max_incidents = max_incidents

        self._on_incident_callbacks: list[Callable[[SourceIncident], None]] = []
        self._on_fallback_callbacks: list[Callable[[str, str], None]] = []

    @property
    def fallback(self) -> StaticRateSource:
        """The static source ending every fallback chain."""
        return self._fallback

    def register(
        self,
        source: BaseRateSource,
        priority: Optional[int] = None,
    ) -> None:
        """
        Register a live rate source.

        Args:
            source: Rate source instance
            priority: Lower = tried first (optional, uses metadata priority)
        """
        name = source.name

        if name in self._sources:
            logger.warning(f"Source '{name}' already registered, replacing")
            self._source_order.remove(name)

        self._sources[name] = source

        if priority is None:
            priority = source.metadata().priority

        insert_idx = len(self._source_order)
        for i, existing_name in enumerate(self._source_order):
            if priority < self._priorities[existing_name]:
                insert_idx = i
                break

        self._priorities[name] = priority
        self._source_order.insert(insert_idx, name)
        logger.info(f"Registered source '{name}' with priority {priority}")

    def list_sources(self) -> list[str]:
        """List all registered live source names in priority order."""
        return self._source_order.copy()

    async def resolve_rate(self, base: str, target: str) -> ExchangeRate:
        """
        Resolve the rate converting `base` into `target`.

        Note:
            Never raises - answers from the static table on complete failure
        """
        try:
            return await self._resolve_live_rate(base, target)
        except NoAvailableSourceError as e:
            if not e.attempted_sources:
                logger.debug(f"No live sources registered, static rate for {base}->{target}")
                return self._fallback.rate(base, target)

            self._on_fallback(",".join(e.attempted_sources), self._fallback.name)
            logger.error(f"Error fetching exchange rate {base}->{target}, using static table: {e}")

        return self._fallback.rate(base, target)

    async def get_exchange_rates(self, base: str) -> RateSnapshot:
        """
        All rates quoted against `base`.

        Note:
            Never raises - answers from the static table on complete failure
        """
        attempted: list[str] = []
        for source in self._sources_to_try():
            attempted.append(source.name)
            try:
                return await source.get_rates(base)
            except Exception as e:
                logger.warning(f"[{source.name}] Failed: {e}")
                self._log_incident(source.name, "fetch_error", str(e), {"base": base})

        if not attempted:
            logger.debug(f"No live sources registered, static rates for {base}")
            return self._fallback.snapshot(base)

        self._on_fallback(",".join(attempted), self._fallback.name)
        logger.error(f"Error fetching exchange rates for {base}, using static table")
        return self._fallback.snapshot(base)

    async def get_currency_pair_rates(self, pairs: Iterable[PairLike]) -> dict[str, Decimal]:
        """
        Market rate of every pair, derived from the USD snapshot.

        USD/X reads rates[X], X/USD inverts rates[X], crosses divide
        rates[QUOTE] by rates[BASE]. Missing entries count as 1. When every
        live source fails the static snapshot is used the same way.
        """
        snapshot = await self.get_exchange_rates(ANCHOR_CURRENCY)

        one = Decimal(1)
        pair_rates: dict[str, Decimal] = {}
        for pair in pairs:
            base_rate = snapshot.rates.get(pair.base_currency) or one
            quote_rate = snapshot.rates.get(pair.quote_currency) or one

            if pair.base_currency == ANCHOR_CURRENCY:
                pair_rates[pair.symbol] = quote_rate
            elif pair.quote_currency == ANCHOR_CURRENCY:
                pair_rates[pair.symbol] = one / base_rate
            else:
                pair_rates[pair.symbol] = quote_rate / base_rate

        return pair_rates

    async def _resolve_live_rate(self, base: str, target: str) -> ExchangeRate:
        """One attempt per live source; raises NoAvailableSourceError when all fail."""
        attempted: list[str] = []
        last_error: Optional[Exception] = None
        previous: Optional[str] = None

        for source in self._sources_to_try():
            attempted.append(source.name)
            try:
                rate = await source.get_rate(base, target)
            except Exception as e:
                logger.warning(f"[{source.name}] Failed: {e}")
                self._log_incident(
                    source.name,
                    "fetch_error",
                    str(e),
                    {"base": base, "target": target},
                )
                last_error = e
                previous = source.name
                continue

            if previous is not None:
                self._on_fallback(previous, source.name)
            return rate

        raise NoAvailableSourceError(
            message=f"No live rate for {base}->{target}",
            attempted_sources=attempted,
            original_error=last_error,
        )

    def _sources_to_try(self) -> list[BaseRateSource]:
        """Usable live sources in priority order, or all of them if none is usable."""
        ordered = [self._sources[name] for name in self._source_order]
        usable = [source for source in ordered if source.is_usable()]

        if ordered and not usable:
            logger.warning("No healthy rate sources available, trying all sources")
            return ordered
        return usable

    def on_incident(self, callback: Callable[[SourceIncident], None]) -> None:
        """Register callback for incidents."""
        self._on_incident_callbacks.append(callback)

    def on_fallback(self, callback: Callable[[str, str], None]) -> None:
        """Register callback for source fallback (from_source, to_source)."""
        self._on_fallback_callbacks.append(callback)

    def _log_incident(
        self,
        source_name: str,
        incident_type: str,
        message: str,
        params: Optional[dict[str, Any]] = None,
    ) -> None:
        """Log an incident."""
        incident = SourceIncident(
            source_name=source_name,
            incident_type=incident_type,
            timestamp=datetime.utcnow(),
            error_message=message,
            request_params=params,
        )

        self._incidents.append(incident)

        if len(self._incidents) > self._max_incidents:
            self._incidents = self._incidents[-self._max_incidents:]

        for callback in self._on_incident_callbacks:
            try:
                callback(incident)
            except Exception as e:
                logger.error(f"Incident callback error: {e}")

    def _on_fallback(self, from_source: str, to_source: str) -> None:
        """Handle source fallback."""
        logger.warning(f"Fallback: {from_source} -> {to_source}")

        self._log_incident(
            from_source,
            "fallback",
            f"Switched to {to_source}",
        )

        for callback in self._on_fallback_callbacks:
            try:
                callback(from_source, to_source)
            except Exception as e:
                logger.error(f"Fallback callback error: {e}")

    def get_incidents(self, limit: int = 100) -> list[SourceIncident]:
        """Get recent incidents."""
        return self._incidents[-limit:]

    def get_stats(self) -> dict[str, Any]:
        """Get provider statistics."""
        return {
            "total_sources": len(self._sources),
            "source_order": self._source_order.copy(),
            "fallback": self._fallback.name,
            "total_incidents": len(self._incidents),
            "sources": {
                name: {
                    "status": source.get_health().status.value,
                    "is_usable": source.is_usable(),
                    "priority": self._priorities[name],
                }
                for name, source in self._sources.items()
            },
        }

    async def close(self) -> None:
        """Close all resources."""
        for source in self._sources.values():
            try:
                await source.close()
            except Exception as e:
                logger.error(f"Error closing source {source.name}: {e}")

        self._sources.clear()
        self._source_order.clear()
        self._priorities.clear()
        logger.info("Rate provider closed")

    async def __aenter__(self) -> "RateProvider":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()


def create_rate_provider(
    base_url: str = "https://api.exchangerate.host",
    api_key: str = "",
    timeout: float = BaseRateSource.DEFAULT_TIMEOUT,
    live: bool = True,
) -> RateProvider:
    """
    Build a provider with exchangerate.host as the live source.

    With live=False no live source is registered and every rate comes
    from the static table.
    """
    from fx_rates.providers.exchangerate_host import ExchangeRateHostSource

    provider = RateProvider()
    if live:
        provider.register(
            ExchangeRateHostSource(base_url=base_url, api_key=api_key, timeout=timeout),
            priority=1,
        )
    return provider
