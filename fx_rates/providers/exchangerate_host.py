"""
exchangerate.host Rate Source - Public API adapter.

Implements live rate lookups against the exchangerate.host REST API.
An access key is optional; when empty it is still sent as an empty param.
"""

import logging
import math
import time
from datetime import date
from decimal import Decimal
from typing import Any, Optional

import aiohttp

from fx_rates.base import BaseRateSource
from fx_rates.exceptions import NormalizationError
from fx_rates.models import (
    ExchangeRate,
    RateSnapshot,
    SourceMetadata,
)


logger = logging.getLogger(__name__)


class ExchangeRateHostSource(BaseRateSource):
    """
    exchangerate.host live rate source.

    Endpoints used:
    - /convert - Single conversion (from, to) -> {"result": float, "date": str}
    - /latest  - Rates for a base (base, symbols) -> {"rates": {CODE: float}, ...}

    fetch_rate() asks /convert first. Only a malformed /convert payload
    triggers the /latest lookup; a transport failure is raised at once.
    """

    BASE_URL = "https://api.exchangerate.host"

    def __init__(
        self,
        base_url: str = BASE_URL,
        api_key: str = "",
        timeout: float = BaseRateSource.DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__(timeout, session)
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    @property
    def name(self) -> str:
        """Unique identifier."""
        return "exchangerate_host"

    def metadata(self) -> SourceMetadata:
        """Return provider metadata."""
        return SourceMetadata(
            name=self.name,
            is_live=True,
            base_url=self._base_url,
            priority=1,
        )

    async def fetch_rate(self, base: str, target: str) -> ExchangeRate:
        """Fetch a single rate via /convert, then /latest if /convert is malformed."""
        try:
            data = await self._make_request(
                "GET",
                f"{self._base_url}/convert",
                params={"from": base, "to": target, "access_key": self._api_key},
            )
            return self._normalize_conversion(data, base, target)
        except NormalizationError as e:
            logger.warning(
                f"[{self.name}] Malformed /convert response for {base}->{target}: "
                f"{e.message}, trying /latest"
            )

        data = await self._make_request(
            "GET",
            f"{self._base_url}/latest",
            params={"base": base, "symbols": target, "access_key": self._api_key},
        )
        snapshot = self._normalize_latest(data, base)
        rate = snapshot.rate_for(target)
        if rate is None:
            raise NormalizationError(
                message=f"/latest response has no rate for {target}",
                source_name=self.name,
                field_name=f"rates.{target}",
            )

        return ExchangeRate(
            base=base,
            target=target,
            rate=rate,
            timestamp=snapshot.timestamp,
            date=snapshot.date,
            is_live=True,
            source_name=self.name,
        )

    async def fetch_rates(self, base: str) -> RateSnapshot:
        """Fetch every rate quoted against `base` via /latest."""
        data = await self._make_request(
            "GET",
            f"{self._base_url}/latest",
            params={"base": base, "access_key": self._api_key},
        )
        return self._normalize_latest(data, base)

    # --------------------------------------------------------
    # Normalization
    # --------------------------------------------------------

    def _normalize_conversion(
        self,
        data: Any,
        base: str,
        target: str,
    ) -> ExchangeRate:
        """Turn a /convert payload into an ExchangeRate."""
        if not isinstance(data, dict):
            raise NormalizationError(
                message="Expected a JSON object",
                source_name=self.name,
            )

        if data.get("success") is False:
            raise NormalizationError(
                message="Service reported failure",
                source_name=self.name,
                field_name="success",
            )

        rate = self._parse_rate(data.get("result"), "result")
        return ExchangeRate(
            base=base,
            target=target,
            rate=rate,
            timestamp=self._parse_timestamp(data),
            date=self._parse_date(data),
            is_live=True,
            source_name=self.name,
        )

    def _normalize_latest(self, data: Any, base: str) -> RateSnapshot:
        """Turn a /latest payload into a RateSnapshot."""
        if not isinstance(data, dict) or not isinstance(data.get("rates"), dict):
            raise NormalizationError(
                message="Response has no rates object",
                source_name=self.name,
                field_name="rates",
            )

        if data.get("success") is False:
            raise NormalizationError(
                message="Service reported failure",
                source_name=self.name,
                field_name="success",
            )

        rates = {
            str(code).upper(): self._parse_rate(value, f"rates.{code}")
            for code, value in data["rates"].items()
        }
        if not rates:
            raise NormalizationError(
                message="Response rates object is empty",
                source_name=self.name,
                field_name="rates",
            )

        return RateSnapshot(
            base=data.get("base") or base,
            rates=rates,
            timestamp=self._parse_timestamp(data),
            date=self._parse_date(data),
            is_live=True,
            source_name=self.name,
        )

    def _parse_rate(self, value: Any, field_name: str) -> Decimal:
        """Accept only finite, positive JSON numbers."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise NormalizationError(
                message=f"Field '{field_name}' is not a number",
                source_name=self.name,
                field_name=field_name,
            )
        if not math.isfinite(value) or value <= 0:
            raise NormalizationError(
                message=f"Field '{field_name}' is not a positive finite number: {value}",
                source_name=self.name,
                field_name=field_name,
            )
        return Decimal(str(value))

    @staticmethod
    def _parse_timestamp(data: dict[str, Any]) -> float:
        info = data.get("info")
        candidates = [data.get("timestamp")]
        if isinstance(info, dict):
            candidates.append(info.get("timestamp"))
        for value in candidates:
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return float(value)
        return time.time()

    @staticmethod
    def _parse_date(data: dict[str, Any]) -> str:
        value = data.get("date")
        if isinstance(value, str) and value:
            return value
        return date.today().isoformat()
