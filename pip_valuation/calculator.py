"""
Pip Valuator - Pip and position values in quote and account currency.

============================================================
RESPONSIBILITY
============================================================
Given a pair symbol, a position size in units, a pip count and an
account currency, compute:

    pip value in quote currency    = units * pair.pip_value
    total value in quote currency  = pip value * pip count
    account currency figures       = quote figures * exchange rate

When the account currency is the pair's quote currency the rate is
exactly 1 and no rate request is made. Otherwise exactly one request
goes to the rate provider, which never fails (static fallback).

The only hard failure is an unknown pair symbol.

============================================================
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from fx_rates import RateProvider, create_rate_provider
from pip_valuation.config import CalculatorConfig, get_config
from pip_valuation.currencies import CURRENCY_PAIRS, CurrencyPair, get_currency_pair_by_symbol
from pip_valuation.exceptions import CurrencyPairNotFoundError, NonPositiveDivisorError
from pip_valuation.lot_sizes import (
    LotSizeStore,
    LotType,
    LotTypeLike,
    get_default_lot_store,
    parse_lot_type,
)
from pip_valuation.reference import ReferenceData


logger = logging.getLogger(__name__)

Number = Union[int, float, str, Decimal]

DEFAULT_PIP_DECIMAL_PLACE = 4


def to_decimal(value: Number) -> Decimal:
    """Decimal from a primitive; floats go through str() so 0.0001 stays exact."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Not a number: {value!r}") from e


@dataclass(frozen=True)
class PipCalculationResult:
    """
    Outcome of one valuation, held by the caller until the next one.

    `is_live_rate` is False only when the rate came from the static table.
    When the account currency is the quote currency no rate is fetched:
    `exchange_rate` is exactly 1 and `is_live_rate` is True, since an
    identity conversion is never an estimate.
    """
    pip_value_in_quote_currency: Decimal
    pip_value_in_account_currency: Decimal
    total_value_in_quote_currency: Decimal
    total_value_in_account_currency: Decimal
    exchange_rate: Decimal
    is_live_rate: bool = True
    pair_symbol: str = ""
    account_currency: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "pair_symbol": self.pair_symbol,
            "account_currency": self.account_currency,
            "pip_value_in_quote_currency": str(self.pip_value_in_quote_currency),
            "pip_value_in_account_currency": str(self.pip_value_in_account_currency),
            "total_value_in_quote_currency": str(self.total_value_in_quote_currency),
            "total_value_in_account_currency": str(self.total_value_in_account_currency),
            "exchange_rate": str(self.exchange_rate),
            "is_live_rate": self.is_live_rate,
        }


# ============================================================
# PURE FUNCTIONS
# ============================================================

def convert_lot_to_units(
    lot_type: LotTypeLike,
    lot_count: Number,
    store: Optional[LotSizeStore] = None,
) -> Decimal:
    """
    Units for `lot_count` lots of `lot_type`.

    CUSTOM bypasses the table: `lot_count` is taken as a raw unit count.
    Unknown lot types resolve to 0 units (see LotSizeStore.on_default).
    """
    count = to_decimal(lot_count)
    if parse_lot_type(lot_type) is LotType.CUSTOM:
        return count

    store = store or get_default_lot_store()
    return store.get_units(lot_type) * count


def calculate_position_size(
    account_balance: Number,
    risk_percentage: Number,
    stop_loss_pips: Number,
    pip_value: Number,
) -> Decimal:
    """
    Units to trade so that hitting the stop loses `risk_percentage` of the balance.

    units = (balance * risk% / 100) / (stop_loss_pips * pip_value)

    Raises:
        NonPositiveDivisorError: stop_loss_pips * pip_value <= 0
    """
    risk_amount = to_decimal(account_balance) * (to_decimal(risk_percentage) / 100)

    divisor = to_decimal(stop_loss_pips) * to_decimal(pip_value)
    if divisor.is_nan() or divisor <= 0:
        raise NonPositiveDivisorError(stop_loss_pips, pip_value)

    return risk_amount / divisor


def get_pip_decimal_place(symbol: str, pairs=CURRENCY_PAIRS) -> int:
    """Decimal place a pip sits on, 4 for unknown symbols."""
    pair = get_currency_pair_by_symbol(symbol, pairs)
    return pair.pip_decimal_place if pair else DEFAULT_PIP_DECIMAL_PLACE


# ============================================================
# VALUATOR
# ============================================================

class PipValuator:
    """
    Pip valuation against injected collaborators.

    The rate provider, lot-size store and reference tables are passed in
    rather than read from module globals, so tests and callers can
    substitute any of them.
    """

    def __init__(
        self,
        rate_provider: RateProvider,
        lot_store: Optional[LotSizeStore] = None,
        reference: Optional[ReferenceData] = None,
    ) -> None:
        self._rate_provider = rate_provider
        self._lot_store = lot_store or get_default_lot_store()
        self._reference = reference or ReferenceData()
        self._pairs = self._reference.pairs_by_symbol()

    @property
    def rate_provider(self) -> RateProvider:
        return self._rate_provider

    @property
    def lot_store(self) -> LotSizeStore:
        return self._lot_store

    @property
    def reference(self) -> ReferenceData:
        return self._reference

    def get_pair(self, symbol: str) -> CurrencyPair:
        """
        Raises:
            CurrencyPairNotFoundError: `symbol` is not in the pair table
        """
        pair = self._pairs.get(symbol)
        if pair is None:
            raise CurrencyPairNotFoundError(symbol)
        return pair

    async def calculate_pip_value(
        self,
        pair_symbol: str,
        position_size_units: Number,
        pip_amount: Number,
        account_currency: str,
    ) -> PipCalculationResult:
        """
        Value one pip and `pip_amount` pips of a position.

        Raises:
            CurrencyPairNotFoundError: Unknown pair symbol; no result is produced
        """
        pair = self.get_pair(pair_symbol)
        units = to_decimal(position_size_units)
        pips = to_decimal(pip_amount)

        pip_value_quote = units * pair.pip_value
        total_value_quote = pip_value_quote * pips

        if account_currency == pair.quote_currency:
            return PipCalculationResult(
                pip_value_in_quote_currency=pip_value_quote,
                pip_value_in_account_currency=pip_value_quote,
                total_value_in_quote_currency=total_value_quote,
                total_value_in_account_currency=total_value_quote,
                exchange_rate=Decimal(1),
                is_live_rate=True,
                pair_symbol=pair.symbol,
                account_currency=account_currency,
            )

        rate = await self._rate_provider.resolve_rate(pair.quote_currency, account_currency)
        if not rate.is_live:
            logger.info(
                f"Using estimated {pair.quote_currency}->{account_currency} rate {rate.rate} "
                f"for {pair.symbol}"
            )

        return PipCalculationResult(
            pip_value_in_quote_currency=pip_value_quote,
            pip_value_in_account_currency=pip_value_quote * rate.rate,
            total_value_in_quote_currency=total_value_quote,
            total_value_in_account_currency=total_value_quote * rate.rate,
            exchange_rate=rate.rate,
            is_live_rate=rate.is_live,
            pair_symbol=pair.symbol,
            account_currency=account_currency,
        )

    async def calculate_for_lots(
        self,
        pair_symbol: str,
        lot_type: LotTypeLike,
        lot_count: Number,
        pip_amount: Number,
        account_currency: str,
    ) -> PipCalculationResult:
        """Convert lots to units with this valuator's store, then value them."""
        units = self.convert_lot_to_units(lot_type, lot_count)
        return await self.calculate_pip_value(pair_symbol, units, pip_amount, account_currency)

    def convert_lot_to_units(self, lot_type: LotTypeLike, lot_count: Number) -> Decimal:
        return convert_lot_to_units(lot_type, lot_count, self._lot_store)

    def get_pip_decimal_place(self, symbol: str) -> int:
        pair = self._pairs.get(symbol)
        return pair.pip_decimal_place if pair else DEFAULT_PIP_DECIMAL_PLACE

    async def close(self) -> None:
        await self._rate_provider.close()

    async def __aenter__(self) -> "PipValuator":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def create_valuator(config: Optional[CalculatorConfig] = None) -> PipValuator:
    """
    Build a valuator from configuration.

    A configured reference data file brings its own lot-size store;
    otherwise the process-wide store is shared.
    """
    config = config or get_config()
    service = config.rate_service

    provider = create_rate_provider(
        base_url=service.base_url,
        api_key=service.api_key,
        timeout=service.timeout_seconds,
        live=service.enabled,
    )

    if config.reference_data_path:
        reference = ReferenceData.from_yaml(config.reference_data_path)
        lot_store = LotSizeStore(reference.lot_sizes)
    else:
        reference = ReferenceData()
        lot_store = get_default_lot_store()

    return PipValuator(provider, lot_store=lot_store, reference=reference)


async def calculate_pip_value(
    pair_symbol: str,
    position_size_units: Number,
    pip_amount: Number,
    account_currency: str,
    config: Optional[CalculatorConfig] = None,
) -> PipCalculationResult:
    """One-shot valuation with a valuator built from `config` (or the default)."""
    async with create_valuator(config) as valuator:
        return await valuator.calculate_pip_value(
            pair_symbol,
            position_size_units,
            pip_amount,
            account_currency,
        )
