"""Modelos tipados para lecturas de glucosa de Dexcom Share."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from dateutil import tz

from share_client_ui.strings import localized

logger = logging.getLogger(__name__)

MMOL_PER_MG = 1 / 18.0182


class GlucoseUnit(Enum):
    """Display unit for glucose quantities."""

    MG_DL = "mg/dL"
    MMOL_L = "mmol/L"

    @classmethod
    def parse(cls, text: str) -> GlucoseUnit:
        """Parse ``mg/dL`` or ``mmol/L`` (case-insensitive)."""
        needle = text.strip().lower()
        for unit in cls:
            if unit.value.lower() == needle:
                return unit
        raise ValueError(f"Unknown glucose unit: {text!r}")


class GlucoseTrend(Enum):
    """Share trend arrows, valued by their wire number."""

    DOUBLE_UP = 1
    SINGLE_UP = 2
    FORTY_FIVE_UP = 3
    FLAT = 4
    FORTY_FIVE_DOWN = 5
    SINGLE_DOWN = 6
    DOUBLE_DOWN = 7

    @property
    def share_name(self) -> str:
        return _SHARE_NAMES[self]

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]

    @property
    def localized_description(self) -> str:
        return localized(f"trend_{self.name.lower()}")

    @classmethod
    def from_share(cls, value: int | str | None) -> GlucoseTrend | None:
        """Map a Share trend (number or name) to a trend.

        Not computable, out of range and unknown values map to None.
        """
        if value is None:
            return None
        if isinstance(value, str) and not value.strip().lstrip("-").isdigit():
            name = value.strip()
            if name in _NO_TREND_NAMES:
                return None
            for trend, share_name in _SHARE_NAMES.items():
                if share_name == name:
                    return trend
            logger.warning("Unknown Share trend %r", value)
            return None
        number = int(value)
        if number in (0, 8, 9):
            return None
        try:
            return cls(number)
        except ValueError:
            logger.warning("Unknown Share trend %r", value)
            return None


_SHARE_NAMES = {
    GlucoseTrend.DOUBLE_UP: "DoubleUp",
    GlucoseTrend.SINGLE_UP: "SingleUp",
    GlucoseTrend.FORTY_FIVE_UP: "FortyFiveUp",
    GlucoseTrend.FLAT: "Flat",
    GlucoseTrend.FORTY_FIVE_DOWN: "FortyFiveDown",
    GlucoseTrend.SINGLE_DOWN: "SingleDown",
    GlucoseTrend.DOUBLE_DOWN: "DoubleDown",
}

_SYMBOLS = {
    GlucoseTrend.DOUBLE_UP: "⇈",
    GlucoseTrend.SINGLE_UP: "↑",
    GlucoseTrend.FORTY_FIVE_UP: "↗",
    GlucoseTrend.FLAT: "→",
    GlucoseTrend.FORTY_FIVE_DOWN: "↘",
    GlucoseTrend.SINGLE_DOWN: "↓",
    GlucoseTrend.DOUBLE_DOWN: "⇊",
}

_NO_TREND_NAMES = {"None", "NotComputable", "RateOutOfRange"}


@dataclass(frozen=True)
class GlucoseReading:
    """One Share glucose value (quantity in mg/dL)."""

    quantity: float
    timestamp: datetime
    trend: GlucoseTrend | None = None

    def __post_init__(self) -> None:
        # Naive timestamps are local time.
        if self.timestamp.tzinfo is None:
            object.__setattr__(
                self, "timestamp", self.timestamp.replace(tzinfo=tz.tzlocal())
            )


def convert(quantity_mg_dl: float, unit: GlucoseUnit) -> float:
    """Convert a mg/dL quantity to ``unit``."""
    if unit is GlucoseUnit.MMOL_L:
        return quantity_mg_dl * MMOL_PER_MG
    return quantity_mg_dl
