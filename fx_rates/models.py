"""
Rate Source Models - Exchange rate records and source bookkeeping.

Rates are carried as Decimal. Records are transient: fetched per request,
never persisted or cached across requests.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class SourceStatus(Enum):
    """Health status of a rate source."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ExchangeRate:
    """
    Rate between two currencies: 1 unit of `base` equals `rate` units of `target`.

    `is_live` is False when the value came from the static fallback table.
    """
    base: str
    target: str
    rate: Decimal
    timestamp: float
    date: str
    is_live: bool = True
    source_name: str = ""


@dataclass(frozen=True)
class RateSnapshot:
    """All known rates quoted against a single base currency."""
    base: str
    rates: dict[str, Decimal]
    timestamp: float
    date: str
    is_live: bool = True
    source_name: str = ""

    def rate_for(self, target: str) -> Optional[Decimal]:
        """Rate for `target`, or None if the snapshot does not quote it."""
        return self.rates.get(target)


@dataclass
class SourceHealth:
    """Consecutive-failure bookkeeping for one source."""
    status: SourceStatus
    last_check: datetime
    latency_ms: Optional[float] = None
    error_count: int = 0
    consecutive_failures: int = 0
    last_error: Optional[str] = None


@dataclass
class SourceMetadata:
    name: str
    is_live: bool
    base_url: str = ""
    priority: int = 0  # Lower = tried first


@dataclass
class SourceIncident:
    """A failed request or a switch to another source."""
    source_name: str
    incident_type: str
    timestamp: datetime
    error_message: str
    request_params: Optional[dict[str, Any]] = None
