"""
Pip Valuation - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line front end for the valuation core.

- Parses primitive inputs (strings, numbers)
- Calls the valuator / rate provider
- Prints results; no calculation happens here

============================================================
USAGE
============================================================
pip-calc value --pair EUR/USD --lot-type STANDARD --lots 1 --pips 10 --account USD
pip-calc value --pair USD/JPY --units 25000 --pips 15 --account EUR --offline
pip-calc position-size --balance 10000 --risk 1 --stop-loss 20 --pip-value 10
pip-calc pairs
pip-calc rates --base EUR

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from pip_valuation.calculator import (
    calculate_position_size,
    create_valuator,
)
from pip_valuation.config import CalculatorConfig
from pip_valuation.exceptions import (
    CurrencyPairNotFoundError,
    NonPositiveDivisorError,
    PipValuationError,
)
from pip_valuation.formatting import format_currency, format_number
from pip_valuation.lot_sizes import LotType


logger = logging.getLogger(__name__)


# ============================================================
# LOGGING SETUP
# ============================================================

def setup_logging(level: str = "INFO", log_format: str = "text") -> None:
    """
    Configure the root logger on stdout.

    Args:
        level: Log level name
        log_format: "json" or "text"
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pip-calc",
        description="Forex pip value calculator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s value --pair EUR/USD --lots 1 --pips 10 --account USD
  %(prog)s value --pair USD/JPY --units 25000 --account EUR --offline
  %(prog)s position-size --balance 10000 --risk 1 --stop-loss 20 --pip-value 10
        """
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (default: LOG_LEVEL or WARNING)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        choices=["text", "json"],
        default=None,
        help="Log output format (default: LOG_FORMAT or text)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # --------------------------------------------------------
    # value
    # --------------------------------------------------------
    value_parser = subparsers.add_parser("value", help="Pip value of a position")
    value_parser.add_argument("--pair", "-p", type=str.upper, required=True, help="Currency pair, e.g. EUR/USD")
    value_parser.add_argument(
        "--lot-type",
        type=str.upper,
        choices=[t.value for t in LotType if t is not LotType.CUSTOM],
        default=LotType.STANDARD.value,
        help="Lot type (default: STANDARD)",
    )
    value_parser.add_argument("--lots", type=str, default="1", help="Number of lots (default: 1)")
    value_parser.add_argument(
        "--units",
        type=str,
        default=None,
        help="Raw unit count; overrides --lot-type/--lots",
    )
    value_parser.add_argument("--pips", type=str, default="1", help="Number of pips (default: 1)")
    value_parser.add_argument("--account", "-a", type=str.upper, default="USD", help="Account currency (default: USD)")
    value_parser.add_argument("--offline", action="store_true", help="Use the static rate table only")
    value_parser.add_argument("--json", action="store_true", help="Print the result as JSON")

    # --------------------------------------------------------
    # position-size
    # --------------------------------------------------------
    size_parser = subparsers.add_parser("position-size", help="Units for a given risk")
    size_parser.add_argument("--balance", required=True, help="Account balance")
    size_parser.add_argument("--risk", required=True, help="Risk in percent of balance")
    size_parser.add_argument("--stop-loss", required=True, help="Stop loss in pips")
    size_parser.add_argument("--pip-value", required=True, help="Value of one pip per unit")

    # --------------------------------------------------------
    # pairs / rates
    # --------------------------------------------------------
    subparsers.add_parser("pairs", help="List supported currency pairs")

    rates_parser = subparsers.add_parser("rates", help="Exchange rates for a base currency")
    rates_parser.add_argument("--base", "-b", type=str.upper, default="USD", help="Base currency (default: USD)")
    rates_parser.add_argument("--offline", action="store_true", help="Use the static rate table only")

    return parser


def build_config(args: argparse.Namespace) -> CalculatorConfig:
    """Environment configuration with command-line overrides applied."""
    config = CalculatorConfig.from_env()

    if getattr(args, "offline", False):
        config = replace(config, rate_service=replace(config.rate_service, enabled=False))
    if args.log_level:
        config = replace(config, log_level=args.log_level)
    if args.log_format:
        config = replace(config, log_format=args.log_format)

    return config


# ============================================================
# COMMANDS
# ============================================================

async def run_value(args: argparse.Namespace, config: CalculatorConfig) -> int:
    async with create_valuator(config) as valuator:
        if args.units is not None:
            units = valuator.convert_lot_to_units(LotType.CUSTOM, args.units)
        else:
            units = valuator.convert_lot_to_units(args.lot_type, args.lots)

        result = await valuator.calculate_pip_value(args.pair, units, args.pips, args.account)
        pair = valuator.get_pair(args.pair)

    if args.json:
        print(json.dumps({**result.to_dict(), "position_size_units": str(units)}, indent=2))
        return 0

    quote = pair.quote_currency
    account = args.account
    rows = [
        ("Pair", pair.symbol),
        ("Position size", f"{format_number(units, 0)} units"),
        (f"Pip value ({quote})", format_currency(result.pip_value_in_quote_currency, quote)),
        (f"Pip value ({account})", format_currency(result.pip_value_in_account_currency, account)),
        (f"Total ({quote})", format_currency(result.total_value_in_quote_currency, quote)),
        (f"Total ({account})", format_currency(result.total_value_in_account_currency, account)),
        (
            "Exchange rate",
            f"{format_number(result.exchange_rate, 5)} "
            f"({'live' if result.is_live_rate else 'estimated'})",
        ),
    ]
    for label, value in rows:
        print(f"{label + ':':<20} {value}")
    return 0


def run_position_size(args: argparse.Namespace) -> int:
    units = calculate_position_size(args.balance, args.risk, args.stop_loss, args.pip_value)
    print(f"Position size: {format_number(units, 0)} units")
    return 0


async def run_pairs(config: CalculatorConfig) -> int:
    async with create_valuator(config) as valuator:
        for pair in valuator.reference.currency_pairs:
            print(f"{pair.symbol:<8} pip {pair.pip_value} ({pair.pip_decimal_place} dp)")
    return 0


async def run_rates(args: argparse.Namespace, config: CalculatorConfig) -> int:
    async with create_valuator(config) as valuator:
        snapshot = await valuator.rate_provider.get_exchange_rates(args.base)

    label = "live" if snapshot.is_live else "estimated"
    print(f"Rates for 1 {snapshot.base} ({label}, {snapshot.date}):")
    for code, rate in sorted(snapshot.rates.items()):
        print(f"  {code}: {format_number(rate, 5)}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    config = build_config(args)
    setup_logging(config.log_level, config.log_format)

    try:
        if args.command == "value":
            return asyncio.run(run_value(args, config))
        if args.command == "position-size":
            return run_position_size(args)
        if args.command == "pairs":
            return asyncio.run(run_pairs(config))
        if args.command == "rates":
            return asyncio.run(run_rates(args, config))
    except CurrencyPairNotFoundError as e:
        print(f"Invalid currency pair: {e.symbol}", file=sys.stderr)
        return 1
    except NonPositiveDivisorError as e:
        print(f"Cannot size position: {e.message}", file=sys.stderr)
        return 1
    except PipValuationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
