"""Pantalla de configuracion de Share, independiente del toolkit grafico.

The screen is a fixed list of sections whose rows are small frozen
dataclasses. A toolkit shell (see ``share_client_ui.app``) asks for the
sections, renders each row through :meth:`SettingsScreen.cell`, forwards taps
to :meth:`SettingsScreen.select` and re-renders when ``on_render`` fires.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import TracebackType
from typing import Protocol, Union

from share_client_ui.editor import AuthenticationEditor
from share_client_ui.model import GlucoseReading
from share_client_ui.preferences import DisplayGlucosePreference
from share_client_ui.share_service import ShareService
from share_client_ui.strings import (
    NO_VALUE,
    TAP_TO_SET,
    format_relative_datetime,
    localized,
)

logger = logging.getLogger(__name__)


class SettingsManager(Protocol):
    """What the screen needs from its CGM manager."""

    @property
    def localized_title(self) -> str: ...

    share_service: ShareService
    latest_backfill: GlucoseReading | None

    def notify_delegate_of_deletion(self, completion: Callable[[], None]) -> None: ...


@dataclass(frozen=True)
class CredentialsRow:
    pass


@dataclass(frozen=True)
class GlucoseRow:
    pass


@dataclass(frozen=True)
class DateRow:
    pass


@dataclass(frozen=True)
class TrendRow:
    pass


@dataclass(frozen=True)
class DeleteRow:
    pass


LatestReadingRow = Union[GlucoseRow, DateRow, TrendRow]
Row = Union[CredentialsRow, GlucoseRow, DateRow, TrendRow, DeleteRow]


@dataclass(frozen=True)
class AuthenticationSection:
    rows: tuple[CredentialsRow, ...] = (CredentialsRow(),)
    header: str | None = None


@dataclass(frozen=True)
class LatestReadingSection:
    rows: tuple[LatestReadingRow, ...] = (GlucoseRow(), DateRow(), TrendRow())
    header: str | None = field(default_factory=lambda: localized("latest_reading"))


@dataclass(frozen=True)
class DeleteSection:
    rows: tuple[DeleteRow, ...] = (DeleteRow(),)
    header: str | None = None


Section = Union[AuthenticationSection, LatestReadingSection, DeleteSection]


class Accessory(Enum):
    NONE = "none"
    DISCLOSURE = "disclosure"


class Alignment(Enum):
    LEFT = "left"
    CENTER = "center"


@dataclass(frozen=True)
class Cell:
    """Rendered content of one row."""

    text: str
    detail: str | None = None
    accessory: Accessory = Accessory.NONE
    alignment: Alignment = Alignment.LEFT
    destructive: bool = False


@dataclass(frozen=True)
class AlertAction:
    title: str
    destructive: bool = False


class DeletionConfirmation:
    """Action sheet asking whether to delete the CGM."""

    def __init__(self, handler: Callable[[], None]) -> None:
        self.message = localized("delete_cgm_confirm")
        self.confirm_action = AlertAction(localized("delete_cgm"), destructive=True)
        self.cancel_action = AlertAction(localized("cancel"))
        self._handler = handler
        self._resolved = False

    @property
    def actions(self) -> tuple[AlertAction, AlertAction]:
        return (self.confirm_action, self.cancel_action)

    @property
    def resolved(self) -> bool:
        return self._resolved

    def confirm(self) -> None:
        # Only the first action of the sheet counts.
        if self._resolved:
            return
        self._resolved = True
        self._handler()

    def cancel(self) -> None:
        self._resolved = True


RenderCallback = Callable[[Union[Row, None]], None]
Dispatcher = Callable[[Callable[[], None]], None]


def _call_now(callback: Callable[[], None]) -> None:
    callback()


class SettingsScreen:
    """Settings for a Share CGM: credentials, latest reading, delete."""

    def __init__(
        self,
        manager: SettingsManager,
        preference: DisplayGlucosePreference,
        allows_deletion: bool,
        *,
        on_complete: Callable[[], None] | None = None,
        dispatch_main: Dispatcher | None = None,
        on_render: RenderCallback | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        """Bind the screen to ``manager`` and watch ``preference`` for unit changes.

        Args:
            manager: CGM manager providing credentials and the latest reading.
            preference: Display unit preference; every change re-renders.
            allows_deletion: Whether the delete section is shown.
            on_complete: Hook of the hosting flow, called when the screen is done.
            dispatch_main: Runs a callback on the UI thread (immediately if None).
            on_render: Called with ``None`` for a full render or a row to refresh.
            now: Reference clock for relative dates.
        """
        self.manager = manager
        self.preference = preference
        self.allows_deletion = allows_deletion
        self.on_complete = on_complete
        self.on_render = on_render
        self.presented: AuthenticationEditor | DeletionConfirmation | None = None
        self.render_count = 0
        self._dispatch_main = dispatch_main or _call_now
        self._now = now
        self._subscription = preference.subscribe(lambda _unit: self.reload())

    @property
    def title(self) -> str:
        return self.manager.localized_title

    def close(self) -> None:
        """Stop observing the unit preference."""
        self._subscription.cancel()

    def __enter__(self) -> SettingsScreen:
        return self

    def __exit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: TracebackType | None,
    ) -> None:
        self.close()

    # Table structure

    def sections(self) -> tuple[Section, ...]:
        base: tuple[Section, ...] = (AuthenticationSection(), LatestReadingSection())
        if self.allows_deletion:
            return (*base, DeleteSection())
        return base

    def number_of_sections(self) -> int:
        return len(self.sections())

    def number_of_rows(self, section: Section) -> int:
        return len(section.rows)

    # Rendering

    def cell(self, row: Row) -> Cell:
        """Texts for ``row`` with sentinels for missing data."""
        if isinstance(row, CredentialsRow):
            return Cell(
                text=localized("credentials"),
                detail=self.manager.share_service.username or TAP_TO_SET,
                accessory=Accessory.DISCLOSURE,
            )
        if isinstance(row, DeleteRow):
            return Cell(
                text=localized("delete_cgm"),
                alignment=Alignment.CENTER,
                destructive=True,
            )

        glucose = self.manager.latest_backfill
        if isinstance(row, GlucoseRow):
            detail = (
                self.preference.format(glucose.quantity)
                if glucose is not None
                else NO_VALUE
            )
            return Cell(text=localized("glucose"), detail=detail)
        if isinstance(row, DateRow):
            detail = (
                format_relative_datetime(
                    glucose.timestamp, self._now() if self._now else None
                )
                if glucose is not None
                else NO_VALUE
            )
            return Cell(text=localized("date"), detail=detail)
        trend = glucose.trend if glucose is not None else None
        detail = trend.localized_description if trend is not None else NO_VALUE
        return Cell(text=localized("trend"), detail=detail)

    def reload(self, row: Row | None = None) -> None:
        """Ask the host to redraw everything, or only ``row``."""
        self.render_count += 1
        if self.on_render is not None:
            self.on_render(row)

    # Selection

    def select(self, row: Row) -> AuthenticationEditor | DeletionConfirmation | None:
        """Handle a tap on ``row``; returns what the host should present."""
        if isinstance(row, CredentialsRow):
            editor = AuthenticationEditor(self.manager.share_service)

            def store_service(service: ShareService) -> None:
                self.manager.share_service = service
                self.reload(row)

            editor.authentication_observer = store_service
            self.presented = editor
            return editor
        if isinstance(row, DeleteRow):
            confirmation = DeletionConfirmation(self._delete)
            self.presented = confirmation
            return confirmation
        return None

    def _delete(self) -> None:
        logger.info("Deletion confirmed for %s", self.title)
        self.manager.notify_delegate_of_deletion(
            lambda: self._dispatch_main(self._complete)
        )

    def done(self) -> None:
        self._complete()

    def _complete(self) -> None:
        if self.on_complete is not None:
            self.on_complete()


def render_text(screen: SettingsScreen) -> str:
    """Plain-text rendering of every section of ``screen``."""
    lines = [screen.title, "=" * len(screen.title)]
    for section in screen.sections():
        lines.append("")
        if section.header:
            lines.append(section.header.upper())
        for row in section.rows:
            cell = screen.cell(row)
            if cell.alignment is Alignment.CENTER:
                lines.append(f"[ {cell.text} ]")
            elif cell.detail is None:
                lines.append(cell.text)
            else:
                suffix = " >" if cell.accessory is Accessory.DISCLOSURE else ""
                lines.append(f"{cell.text}: {cell.detail}{suffix}")
    return "\n".join(lines)
