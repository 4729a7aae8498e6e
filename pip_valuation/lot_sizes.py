"""
Lot sizes and the editable lot-size store.

============================================================
CONCURRENCY CONTRACT
============================================================
LotSizeStore is process-wide mutable state without locking. Reads are
read-through: a reader sees whatever value is current at lookup time,
and two reads in one calculation may observe different values if an
update lands between them.

============================================================
"""

import logging
from enum import Enum
from typing import Callable, Mapping, Optional, Union


logger = logging.getLogger(__name__)


class LotType(Enum):
    """Standardized position sizes, CUSTOM meaning a raw unit count."""
    STANDARD = "STANDARD"
    MINI = "MINI"
    MICRO = "MICRO"
    NANO = "NANO"
    CUSTOM = "CUSTOM"


LOT_SIZES: dict[LotType, int] = {
    LotType.STANDARD: 100_000,
    LotType.MINI: 10_000,
    LotType.MICRO: 1_000,
    LotType.NANO: 100,
}

LOT_SIZE_LABELS: dict[LotType, str] = {
    LotType.STANDARD: "Standard (100,000)",
    LotType.MINI: "Mini (10,000)",
    LotType.MICRO: "Micro (1,000)",
    LotType.NANO: "Nano (100)",
    LotType.CUSTOM: "Custom",
}


LotTypeLike = Union[LotType, str]
DefaultCallback = Callable[[str, str], None]


def parse_lot_type(value: LotTypeLike) -> Optional[LotType]:
    """LotType for an enum member or its name (case-insensitive), else None."""
    if isinstance(value, LotType):
        return value
    try:
        return LotType(str(value).upper())
    except ValueError:
        return None


class LotSizeStore:
    """
    Editable lot-size table injected into the valuator.

    Unknown lot types resolve to 0 units; the default is logged and
    reported to on_default() callbacks as ("lot_size", name).
    """

    def __init__(self, sizes: Optional[Mapping[LotType, int]] = None) -> None:
        self._defaults = dict(sizes if sizes is not None else LOT_SIZES)
        self._sizes = dict(self._defaults)
        self._on_default_callbacks: list[DefaultCallback] = []

    def get_units(self, lot_type: LotTypeLike) -> int:
        """Units per lot for `lot_type`, 0 when the table has no entry."""
        parsed = parse_lot_type(lot_type)
        units = self._sizes.get(parsed) if parsed is not None else None
        if units is None:
            self._default_used(lot_type)
            return 0
        return units

    def update(self, lot_type: LotTypeLike, units: int) -> None:
        """
        Change the unit count of one lot type.

        Raises:
            ValueError: CUSTOM, an unknown lot type, or a non-positive count
        """
        parsed = parse_lot_type(lot_type)
        if parsed is None:
            raise ValueError(f"Unknown lot type: {lot_type}")
        if parsed is LotType.CUSTOM:
            raise ValueError("CUSTOM lots have no table entry")
        if isinstance(units, bool) or not isinstance(units, int) or units <= 0:
            raise ValueError(f"Lot units must be a positive integer, got {units!r}")

        previous = self._sizes.get(parsed)
        self._sizes[parsed] = units
        logger.info(f"Lot size {parsed.value} updated: {previous} -> {units}")

    def reset(self) -> None:
        """Restore the sizes the store was created with."""
        self._sizes = dict(self._defaults)

    def snapshot(self) -> dict[LotType, int]:
        """Copy of the current table."""
        return dict(self._sizes)

    def label(self, lot_type: LotTypeLike) -> str:
        parsed = parse_lot_type(lot_type)
        if parsed is None:
            return str(lot_type)
        return LOT_SIZE_LABELS[parsed]

    def on_default(self, callback: DefaultCallback) -> None:
        """Register callback fired as (table, lot_type) when a lookup defaults to 0."""
        self._on_default_callbacks.append(callback)

    def _default_used(self, lot_type: LotTypeLike) -> None:
        name = lot_type.value if isinstance(lot_type, LotType) else str(lot_type)
        logger.warning(f"No lot size for '{name}', defaulting to 0 units")
        for callback in self._on_default_callbacks:
            try:
                callback("lot_size", name)
            except Exception as e:
                logger.error(f"Default callback error: {e}")


# Process-wide store shared by valuators that are not given their own
_default_store: Optional[LotSizeStore] = None


def get_default_lot_store() -> LotSizeStore:
    """Get or create the process-wide lot-size store."""
    global _default_store
    if _default_store is None:
        _default_store = LotSizeStore()
    return _default_store


def get_lot_units(lot_type: LotTypeLike) -> int:
    """Units per lot from the process-wide store."""
    return get_default_lot_store().get_units(lot_type)


def update_lot_size(lot_type: LotTypeLike, units: int) -> None:
    """Update the process-wide store."""
    get_default_lot_store().update(lot_type, units)
