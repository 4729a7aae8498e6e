"""
Base Rate Source - Abstract interface for exchange-rate providers.

All providers MUST implement this interface so the RateProvider can put
them in a fallback chain without knowing which service is behind them.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

import aiohttp

from fx_rates.exceptions import (
    FetchError,
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


logger = logging.getLogger(__name__)


class BaseRateSource(ABC):
    """
    Abstract base class for all rate sources.

    Each rate source implementation must:
    1. Implement fetch_rate() - Rate between two currencies
    2. Implement fetch_rates() - All rates for one base currency
    3. Implement metadata() - Return provider metadata

    The base class adds health tracking and incident logging around both
    calls. There is no retry loop: a single failed attempt is reported to
    the caller, which decides whether to fall back.
    """

    DEFAULT_TIMEOUT = 10.0
    DEGRADED_THRESHOLD = 3  # consecutive failures before degraded
    UNAVAILABLE_THRESHOLD = 5  # consecutive failures before unavailable

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None

        # Health tracking
        self._health = SourceHealth(
            status=SourceStatus.UNKNOWN,
            last_check=datetime.utcnow(),
        )
        self._incidents: list[SourceIncident] = []
        self._max_incidents = 100

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this rate source."""
        pass

    @property
    def timeout(self) -> float:
        """Per-request timeout in seconds."""
        return self._timeout

    @abstractmethod
    async def fetch_rate(self, base: str, target: str) -> ExchangeRate:
        """
        Fetch the rate converting `base` into `target`.

        Raises:
            FetchError: Transport failure (connection, HTTP status, timeout)
            NormalizationError: Response carried no usable rate
        """
        pass

    @abstractmethod
    async def fetch_rates(self, base: str) -> RateSnapshot:
        """
        Fetch every rate the provider quotes against `base`.

        Raises:
            FetchError: Transport failure
            NormalizationError: Response carried no usable rates
        """
        pass

    @abstractmethod
    def metadata(self) -> SourceMetadata:
        """Return provider metadata."""
        pass

    async def get_rate(self, base: str, target: str) -> ExchangeRate:
        """
        Fetch a rate with health tracking (main entry point).

        Raises:
            RateSourceError: Any failure, unexpected ones wrapped
        """
        params = {"base": base, "target": target}
        try:
            rate = await self.fetch_rate(base, target)
        except RateSourceError as e:
            self._on_error(e, params)
            raise
        except Exception as e:
            error = RateSourceError(
                message=f"Unexpected error: {e}",
                source_name=self.name,
                original_error=e,
            )
            self._on_error(error, params)
            raise error from e

        self._on_success()
        return rate

    async def get_rates(self, base: str) -> RateSnapshot:
        """Fetch a rate snapshot with health tracking."""
        params = {"base": base}
        try:
            snapshot = await self.fetch_rates(base)
        except RateSourceError as e:
            self._on_error(e, params)
            raise
        except Exception as e:
            error = RateSourceError(
                message=f"Unexpected error: {e}",
                source_name=self.name,
                original_error=e,
            )
            self._on_error(error, params)
            raise error from e

        self._on_success()
        return snapshot

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        """Get default HTTP headers."""
        return {
            "Accept": "application/json",
            "User-Agent": "PipCalculator/1.0",
        }

    async def _make_request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Make one HTTP request bounded by the source timeout.

        Returns the decoded JSON body. A body that is not JSON raises
        NormalizationError so callers can treat it as a malformed payload.
        """
        session = await self._get_session()

        start_time = time.time()
        try:
            async with session.request(
                method,
                url,
                params=params,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as response:
                latency_ms = (time.time() - start_time) * 1000
                self._health.latency_ms = latency_ms

                if response.status >= 400:
                    body = await response.text()
                    raise FetchError(
                        message=f"HTTP {response.status}: {body[:200]}",
                        source_name=self.name,
                        status_code=response.status,
                    )

                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise NormalizationError(
                        message="Response body is not JSON",
                        source_name=self.name,
                        original_error=e,
                    ) from e

                logger.debug(f"[{self.name}] Request completed in {latency_ms:.1f}ms")
                return data

        except asyncio.TimeoutError as e:
            raise FetchError(
                message=f"Timed out after {self._timeout}s",
                source_name=self.name,
                timeout=True,
                original_error=e,
            ) from e
        except aiohttp.ClientError as e:
            raise FetchError(
                message=f"Connection error: {e}",
                source_name=self.name,
                original_error=e,
            ) from e

    def _on_success(self) -> None:
        """Handle successful request."""
        self._health.last_check = datetime.utcnow()
        self._health.consecutive_failures = 0

        if self._health.status != SourceStatus.HEALTHY:
            if self._health.status != SourceStatus.UNKNOWN:
                logger.info(f"[{self.name}] Recovered to HEALTHY status")
            self._health.status = SourceStatus.HEALTHY

    def _on_error(
        self,
        error: RateSourceError,
        params: Optional[dict[str, Any]] = None,
    ) -> None:
        """Handle request error."""
        self._health.last_check = datetime.utcnow()
        self._health.error_count += 1
        self._health.consecutive_failures += 1
        self._health.last_error = str(error)

        if self._health.consecutive_failures >= self.UNAVAILABLE_THRESHOLD:
            if self._health.status != SourceStatus.UNAVAILABLE:
                self._health.status = SourceStatus.UNAVAILABLE
                logger.error(f"[{self.name}] Marked UNAVAILABLE after {self._health.consecutive_failures} failures")
        elif self._health.consecutive_failures >= self.DEGRADED_THRESHOLD:
            if self._health.status != SourceStatus.DEGRADED:
                self._health.status = SourceStatus.DEGRADED
                logger.warning(f"[{self.name}] Marked DEGRADED after {self._health.consecutive_failures} failures")

        self._log_incident(error, params)

    def _log_incident(
        self,
        error: RateSourceError,
        params: Optional[dict[str, Any]] = None,
    ) -> None:
        """Log an incident."""
        incident = SourceIncident(
            source_name=self.name,
            incident_type=error.__class__.__name__,
            timestamp=datetime.utcnow(),
            error_message=str(error),
            request_params=params,
        )

        self._incidents.append(incident)

        if len(self._incidents) > self._max_incidents:
            self._incidents = self._incidents[-self._max_incidents:]

        logger.warning(f"[{self.name}] Incident logged: {error}")

    def get_health(self) -> SourceHealth:
        """Get current health status."""
        return self._health

    def get_incidents(self, limit: int = 10) -> list[SourceIncident]:
        """Get recent incidents."""
        return self._incidents[-limit:]

    def is_usable(self) -> bool:
        """Check if source can be used (not marked unavailable)."""
        return self._health.status != SourceStatus.UNAVAILABLE

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BaseRateSource":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, status={self._health.status.value})>"
