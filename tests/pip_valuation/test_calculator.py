"""
Pip Valuator Tests.

============================================================
PURPOSE
============================================================
Unit tests for pip valuation and position sizing.

TEST PRINCIPLES:
- Quote-currency accounts never request a rate
- Account figures are quote figures times the rate
- Unknown pairs fail with no result
- Forced network failure yields the deterministic static rate

============================================================
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from fx_rates import (
    ExchangeRate,
    ExchangeRateHostSource,
    FetchError,
    RateProvider,
)
from pip_valuation import (
    CURRENCY_PAIRS,
    CalculatorConfig,
    CurrencyPairNotFoundError,
    LotSizeStore,
    LotType,
    NonPositiveDivisorError,
    PipValuator,
    RateServiceConfig,
    calculate_pip_value,
    calculate_position_size,
    convert_lot_to_units,
    format_currency,
    format_number,
    get_pip_decimal_place,
    to_decimal,
)


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def mock_provider():
    """Rate provider that answers 0.5 for every request."""
    provider = MagicMock(spec=RateProvider)
    provider.resolve_rate = AsyncMock(side_effect=lambda base, target: ExchangeRate(
        base=base,
        target=target,
        rate=Decimal("0.5"),
        timestamp=0.0,
        date="2024-03-01",
        is_live=True,
        source_name="mock",
    ))
    provider.close = AsyncMock()
    return provider


@pytest.fixture
def offline_provider():
    """Real provider whose only live source always fails."""
    source = ExchangeRateHostSource()
    source._make_request = AsyncMock(
        side_effect=FetchError("Timed out after 10.0s", source_name=source.name, timeout=True)
    )
    provider = RateProvider()
    provider.register(source)
    return provider


@pytest.fixture
def lot_store():
    return LotSizeStore()


# ============================================================
# VALUATION TESTS
# ============================================================

class TestCalculatePipValue:
    """Tests for PipValuator.calculate_pip_value."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("pair", CURRENCY_PAIRS, ids=lambda p: p.symbol)
    async def test_quote_currency_account_short_circuits(self, pair, mock_provider, lot_store):
        """Test rate is exactly 1 and no rate request when account is the quote currency."""
        valuator = PipValuator(mock_provider, lot_store=lot_store)

        result = await valuator.calculate_pip_value(pair.symbol, 100000, 3, pair.quote_currency)

        assert result.exchange_rate == 1
        assert result.is_live_rate is True
        assert result.pip_value_in_account_currency == result.pip_value_in_quote_currency
        assert result.total_value_in_account_currency == result.total_value_in_quote_currency
        mock_provider.resolve_rate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_eur_usd_standard_lot(self, mock_provider, lot_store):
        """Test one standard lot of EUR/USD is worth 10 USD per pip."""
        valuator = PipValuator(mock_provider, lot_store=lot_store)

        result = await valuator.calculate_pip_value("EUR/USD", 100000, 1, "USD")

        assert result.pip_value_in_quote_currency == 10
        assert result.total_value_in_quote_currency == 10
        assert result.pip_value_in_account_currency == 10
        assert result.total_value_in_account_currency == 10
        assert result.exchange_rate == 1
        assert result.is_live_rate is True

    @pytest.mark.asyncio
    async def test_conversion_applies_rate(self, mock_provider, lot_store):
        """Test account figures are quote figures times the resolved rate."""
        valuator = PipValuator(mock_provider, lot_store=lot_store)

        result = await valuator.calculate_pip_value("GBP/JPY", 10000, 20, "EUR")

        mock_provider.resolve_rate.assert_awaited_once_with("JPY", "EUR")
        assert result.pip_value_in_quote_currency == 100
        assert result.total_value_in_quote_currency == 2000
        assert result.exchange_rate == Decimal("0.5")
        assert result.pip_value_in_account_currency == 50
        assert result.total_value_in_account_currency == 1000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("pip_amount", [0, 1, 2.5, "7", Decimal("12.25"), 350])
    async def test_total_is_pip_value_times_amount(self, pip_amount, mock_provider, lot_store):
        """Test totals equal pip value times pip count in both currencies."""
        valuator = PipValuator(mock_provider, lot_store=lot_store)

        result = await valuator.calculate_pip_value("AUD/CAD", 25000, pip_amount, "USD")

        pips = to_decimal(pip_amount)
        assert result.total_value_in_quote_currency == result.pip_value_in_quote_currency * pips
        assert result.total_value_in_account_currency == result.pip_value_in_account_currency * pips

    @pytest.mark.asyncio
    async def test_usd_jpy_forced_network_failure(self, offline_provider, lot_store):
        """Test JPY quote with USD account falls back to the static rate."""
        valuator = PipValuator(offline_provider, lot_store=lot_store)

        result = await valuator.calculate_pip_value("USD/JPY", 100000, 1, "USD")

        fallback_rate = offline_provider.fallback.rate("JPY", "USD").rate
        assert result.pip_value_in_quote_currency == 1000
        assert result.exchange_rate == fallback_rate
        assert result.exchange_rate > 0
        assert result.exchange_rate.is_finite()
        assert result.pip_value_in_account_currency == result.pip_value_in_quote_currency * fallback_rate
        assert result.is_live_rate is False

    @pytest.mark.asyncio
    async def test_forced_failure_is_reproducible(self, offline_provider, lot_store):
        """Test repeated calculations under failure give identical results."""
        valuator = PipValuator(offline_provider, lot_store=lot_store)

        first = await valuator.calculate_pip_value("EUR/JPY", 50000, 10, "GBP")
        second = await valuator.calculate_pip_value("EUR/JPY", 50000, 10, "GBP")

        assert first == second

    @pytest.mark.asyncio
    async def test_unknown_pair_fails(self, mock_provider, lot_store):
        """Test unregistered symbols fail with no rate request."""
        valuator = PipValuator(mock_provider, lot_store=lot_store)

        with pytest.raises(CurrencyPairNotFoundError) as exc_info:
            await valuator.calculate_pip_value("XXX/YYY", 100000, 1, "USD")

        assert exc_info.value.symbol == "XXX/YYY"
        assert "XXX/YYY" in str(exc_info.value)
        mock_provider.resolve_rate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_calculate_for_lots_uses_store(self, mock_provider):
        """Test lot conversion reads the injected store at call time."""
        store = LotSizeStore()
        valuator = PipValuator(mock_provider, lot_store=store)

        store.update(LotType.MINI, 20000)
        result = await valuator.calculate_for_lots("EUR/USD", "MINI", 1, 1, "USD")

        assert result.pip_value_in_quote_currency == 2

    @pytest.mark.asyncio
    async def test_module_level_offline(self):
        """Test the one-shot helper with live rates disabled."""
        config = CalculatorConfig(rate_service=RateServiceConfig(enabled=False))

        result = await calculate_pip_value("USD/JPY", 100000, 1, "USD", config=config)

        assert result.exchange_rate == Decimal("1.0") / Decimal("110.33")
        assert result.is_live_rate is False

    def test_result_to_dict(self):
        """Test serialization keeps decimals as strings."""
        from pip_valuation import PipCalculationResult

        result = PipCalculationResult(
            pip_value_in_quote_currency=Decimal("10.0000"),
            pip_value_in_account_currency=Decimal("10.0000"),
            total_value_in_quote_currency=Decimal("10.0000"),
            total_value_in_account_currency=Decimal("10.0000"),
            exchange_rate=Decimal(1),
            pair_symbol="EUR/USD",
            account_currency="USD",
        )

        data = result.to_dict()

        assert data["exchange_rate"] == "1"
        assert data["pip_value_in_quote_currency"] == "10.0000"
        assert data["is_live_rate"] is True


# ============================================================
# LOT CONVERSION TESTS
# ============================================================

class TestConvertLotToUnits:
    """Tests for convert_lot_to_units and LotSizeStore."""

    def test_standard_lots(self, lot_store):
        assert convert_lot_to_units("STANDARD", 2, lot_store) == 200000

    def test_micro_lot(self, lot_store):
        assert convert_lot_to_units("MICRO", 1, lot_store) == 1000

    def test_enum_and_fractional_count(self, lot_store):
        assert convert_lot_to_units(LotType.MINI, 0.5, lot_store) == 5000
        assert convert_lot_to_units(LotType.NANO, 3, lot_store) == 300

    def test_custom_is_raw_units(self, lot_store):
        """Test CUSTOM bypasses the table."""
        assert convert_lot_to_units(LotType.CUSTOM, 2500, lot_store) == 2500

    def test_unknown_lot_type_is_zero(self, lot_store):
        """Test unknown lot types silently resolve to 0 units and fire the hook."""
        defaults = []
        lot_store.on_default(lambda table, key: defaults.append((table, key)))

        assert convert_lot_to_units("JUMBO", 3, lot_store) == 0
        assert defaults == [("lot_size", "JUMBO")]

    def test_default_store(self):
        assert convert_lot_to_units("STANDARD", 1) == 100000

    def test_update_is_read_through(self, lot_store):
        """Test updates are visible to the next lookup."""
        lot_store.update("STANDARD", 50000)

        assert convert_lot_to_units("STANDARD", 2, lot_store) == 100000

        lot_store.reset()
        assert convert_lot_to_units("STANDARD", 2, lot_store) == 200000

    @pytest.mark.parametrize("lot_type,units", [
        ("CUSTOM", 10),
        ("JUMBO", 10),
        ("MINI", 0),
        ("MINI", -5),
        ("MINI", 2.5),
    ])
    def test_invalid_updates_rejected(self, lot_store, lot_type, units):
        with pytest.raises(ValueError):
            lot_store.update(lot_type, units)

    def test_snapshot_and_labels(self, lot_store):
        snapshot = lot_store.snapshot()
        snapshot[LotType.MICRO] = 1

        assert lot_store.get_units(LotType.MICRO) == 1000
        assert lot_store.label("standard") == "Standard (100,000)"
        assert lot_store.label(LotType.CUSTOM) == "Custom"


# ============================================================
# POSITION SIZE TESTS
# ============================================================

class TestCalculatePositionSize:
    """Tests for calculate_position_size."""

    def test_basic_sizing(self):
        """Test 1% of 10,000 over a 20 pip stop at 10 per pip."""
        assert calculate_position_size(10000, 1, 20, 10) == Decimal("0.5")

    def test_per_unit_pip_value(self):
        assert calculate_position_size(10000, 2, 50, 0.0001) == 40000

    @pytest.mark.parametrize("stop_loss,pip_value", [
        (0, 10),
        (20, 0),
        (-5, 10),
        (0, 0),
    ])
    def test_non_positive_divisor_fails(self, stop_loss, pip_value):
        """Test zero or negative divisors fail instead of producing Infinity/NaN."""
        with pytest.raises(NonPositiveDivisorError):
            calculate_position_size(10000, 1, stop_loss, pip_value)


# ============================================================
# HELPER TESTS
# ============================================================

class TestHelpers:
    """Tests for pip decimal places, conversion and formatting."""

    def test_pip_decimal_place(self):
        assert get_pip_decimal_place("USD/JPY") == 2
        assert get_pip_decimal_place("EUR/USD") == 4
        assert get_pip_decimal_place("XXX/YYY") == 4

    def test_to_decimal(self):
        assert to_decimal(0.0001) == Decimal("0.0001")
        assert to_decimal("12.5") == Decimal("12.5")
        assert to_decimal(7) == 7

    @pytest.mark.parametrize("value", ["abc", True, None])
    def test_to_decimal_rejects(self, value):
        with pytest.raises(ValueError):
            to_decimal(value)

    def test_format_currency(self):
        assert format_currency(1234.5, "USD") == "$1,234.50"
        assert format_currency(Decimal("-10"), "EUR") == "-€10.00"
        assert format_currency(1000, "JPY", decimals=0) == "¥1,000"
        assert format_currency(5, "SEK") == "SEK 5.00"

    def test_format_number(self):
        assert format_number(1234567.891) == "1,234,567.89"
        assert format_number(Decimal("0.0091234"), 5) == "0.00912"
        assert format_number(100000, 0) == "100,000"


# ============================================================
# RUN TESTS
# ============================================================

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
