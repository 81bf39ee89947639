"""Preferencia observable de unidad de glucosa."""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType

from share_client_ui.model import GlucoseUnit, convert

logger = logging.getLogger(__name__)

UnitObserver = Callable[[GlucoseUnit], None]


class Subscription:
    """Handle returned by ``DisplayGlucosePreference.subscribe``.

    Cancelling twice is harmless; leaving a ``with`` block cancels it.
    """

    def __init__(self, preference: DisplayGlucosePreference, token: int) -> None:
        self._preference = preference
        self._token = token
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._preference._observers.pop(self._token, None)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: TracebackType | None,
    ) -> None:
        self.cancel()


class DisplayGlucosePreference:
    """Unit preference shared by every screen that shows glucose values."""

    def __init__(self, unit: GlucoseUnit = GlucoseUnit.MG_DL) -> None:
        self._unit = unit
        self._observers: dict[int, UnitObserver] = {}
        self._next_token = 0

    @property
    def unit(self) -> GlucoseUnit:
        return self._unit

    @unit.setter
    def unit(self, value: GlucoseUnit) -> None:
        if value is self._unit:
            return
        logger.info("Glucose unit changed: %s -> %s", self._unit.value, value.value)
        self._unit = value
        for observer in list(self._observers.values()):
            observer(value)

    def subscribe(self, observer: UnitObserver) -> Subscription:
        """Register ``observer`` for unit changes until the subscription ends."""
        token = self._next_token
        self._next_token += 1
        self._observers[token] = observer
        return Subscription(self, token)

    @property
    def subscriber_count(self) -> int:
        return len(self._observers)

    def format(self, quantity_mg_dl: float) -> str:
        """Format a mg/dL quantity in the current unit."""
        value = convert(quantity_mg_dl, self._unit)
        if self._unit is GlucoseUnit.MMOL_L:
            return f"{value:.1f} {self._unit.value}"
        return f"{round(value):d} {self._unit.value}"
