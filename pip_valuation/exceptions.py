"""
Pip Valuation - Exceptions.

============================================================
EXCEPTION HIERARCHY
============================================================
PipValuationError (base)
├── CurrencyPairNotFoundError
├── NonPositiveDivisorError
└── ReferenceDataError

Rate acquisition failures never show up here: the rate provider
absorbs them into its static fallback.

============================================================
"""

from datetime import datetime
from typing import Any, Optional


class PipValuationError(Exception):
    """Base exception for the valuation core."""

    def __init__(
        self,
        message: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.utcnow()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }


class CurrencyPairNotFoundError(PipValuationError):
    """The pair symbol has no entry in the reference table."""

    def __init__(self, symbol: str) -> None:
        super().__init__(
            f"Currency pair {symbol} not found",
            context={"symbol": symbol},
        )
        self.symbol = symbol


class NonPositiveDivisorError(PipValuationError):
    """Position sizing with a zero or negative stop loss times pip value."""

    def __init__(self, stop_loss_pips: Any, pip_value: Any) -> None:
        super().__init__(
            f"Stop loss ({stop_loss_pips} pips) times pip value ({pip_value}) must be positive",
            context={"stop_loss_pips": str(stop_loss_pips), "pip_value": str(pip_value)},
        )
        self.stop_loss_pips = stop_loss_pips
        self.pip_value = pip_value


class ReferenceDataError(PipValuationError):
    """A reference data file could not be loaded."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        field_name: Optional[str] = None,
    ) -> None:
        super().__init__(message, context={"path": path, "field_name": field_name})
        self.path = path
        self.field_name = field_name
