from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

import pytest
from dateutil import tz

from share_client_ui.editor import AuthenticationEditor
from share_client_ui.model import GlucoseReading, GlucoseTrend, GlucoseUnit
from share_client_ui.preferences import DisplayGlucosePreference
from share_client_ui.screen import (
    Accessory,
    Alignment,
    AuthenticationSection,
    CredentialsRow,
    DateRow,
    DeleteRow,
    DeleteSection,
    DeletionConfirmation,
    GlucoseRow,
    LatestReadingSection,
    SettingsScreen,
    TrendRow,
    render_text,
)
from share_client_ui.share_service import KnownShareServers, ShareService
from share_client_ui.strings import NO_VALUE, TAP_TO_SET

_NOW = datetime(2026, 3, 10, 15, 0, tzinfo=tz.tzlocal())


class _Manager:
    def __init__(
        self,
        service: ShareService | None = None,
        reading: GlucoseReading | None = None,
    ) -> None:
        self.share_service = service or ShareService()
        self.latest_backfill = reading
        self.deletions: list[Callable[[], None]] = []

    @property
    def localized_title(self) -> str:
        return "Dexcom Share"

    def notify_delegate_of_deletion(self, completion: Callable[[], None]) -> None:
        self.deletions.append(completion)


def _screen(
    manager: _Manager,
    *,
    allows_deletion: bool = True,
    preference: DisplayGlucosePreference | None = None,
    **kwargs: object,
) -> SettingsScreen:
    return SettingsScreen(
        manager,
        preference or DisplayGlucosePreference(),
        allows_deletion,
        now=lambda: _NOW,
        **kwargs,  # type: ignore[arg-type]
    )


def test_sections_without_deletion() -> None:
    screen = _screen(_Manager(), allows_deletion=False)
    sections = screen.sections()
    assert screen.number_of_sections() == 2
    assert isinstance(sections[0], AuthenticationSection)
    assert isinstance(sections[1], LatestReadingSection)
    assert not any(isinstance(s, DeleteSection) for s in sections)


def test_delete_section_is_last_with_one_row() -> None:
    screen = _screen(_Manager(), allows_deletion=True)
    sections = screen.sections()
    assert screen.number_of_sections() == 3
    assert isinstance(sections[-1], DeleteSection)
    assert screen.number_of_rows(sections[-1]) == 1
    assert sections[-1].rows == (DeleteRow(),)


def test_row_counts_and_order() -> None:
    screen = _screen(_Manager())
    auth, latest, _delete = screen.sections()
    assert screen.number_of_rows(auth) == 1
    assert latest.rows == (GlucoseRow(), DateRow(), TrendRow())
    assert latest.header == "Latest Reading"
    assert auth.header is None


def test_credentials_cell_sentinel_and_username() -> None:
    manager = _Manager()
    screen = _screen(manager)
    cell = screen.cell(CredentialsRow())
    assert cell.detail == TAP_TO_SET
    assert cell.accessory is Accessory.DISCLOSURE

    manager.share_service = ShareService(username="alice")
    assert screen.cell(CredentialsRow()).detail == "alice"


def test_latest_reading_cells_without_reading() -> None:
    screen = _screen(_Manager())
    for row in (GlucoseRow(), DateRow(), TrendRow()):
        assert screen.cell(row).detail == NO_VALUE


def test_latest_reading_cells_with_reading() -> None:
    reading = GlucoseReading(
        quantity=120.0,
        timestamp=_NOW - timedelta(minutes=5),
        trend=GlucoseTrend.FLAT,
    )
    screen = _screen(_Manager(reading=reading))
    assert screen.cell(GlucoseRow()).detail == "120 mg/dL"
    assert screen.cell(DateRow()).detail.startswith("Today at 2:55:00 PM")
    assert screen.cell(TrendRow()).detail == "Flat"


def test_trend_missing_shows_no_value() -> None:
    reading = GlucoseReading(quantity=90.0, timestamp=_NOW, trend=None)
    screen = _screen(_Manager(reading=reading))
    assert screen.cell(TrendRow()).detail == NO_VALUE


def test_delete_cell_is_centered_and_destructive() -> None:
    cell = _screen(_Manager()).cell(DeleteRow())
    assert cell.text == "Delete CGM"
    assert cell.alignment is Alignment.CENTER
    assert cell.destructive


def test_unit_change_renders_once_and_keeps_reading() -> None:
    reading = GlucoseReading(quantity=180.0, timestamp=_NOW)
    manager = _Manager(reading=reading)
    preference = DisplayGlucosePreference()
    renders: list[object] = []
    screen = _screen(manager, preference=preference, on_render=renders.append)

    preference.unit = GlucoseUnit.MMOL_L

    assert renders == [None]
    assert screen.render_count == 1
    assert manager.latest_backfill is reading
    assert screen.cell(GlucoseRow()).detail == "10.0 mmol/L"


def test_close_releases_subscription() -> None:
    preference = DisplayGlucosePreference()
    with _screen(_Manager(), preference=preference) as screen:
        assert preference.subscriber_count == 1
    assert preference.subscriber_count == 0
    preference.unit = GlucoseUnit.MMOL_L
    assert screen.render_count == 0


def test_select_latest_reading_rows_is_inert() -> None:
    manager = _Manager()
    screen = _screen(manager)
    for row in (GlucoseRow(), DateRow(), TrendRow()):
        assert screen.select(row) is None
    assert screen.presented is None
    assert screen.render_count == 0


def test_select_credentials_writes_back_and_reloads_row() -> None:
    manager = _Manager(service=ShareService(username="old"))
    renders: list[object] = []
    screen = _screen(manager, on_render=renders.append)

    editor = screen.select(CredentialsRow())
    assert isinstance(editor, AuthenticationEditor)
    assert editor.authentication.username == "old"

    editor.update({"username": "new", "password": "pw", "server": "APAC"})

    assert manager.share_service.username == "new"
    assert manager.share_service.server is KnownShareServers.APAC
    assert renders == [CredentialsRow()]


def test_confirm_deletion_completes_after_callback() -> None:
    manager = _Manager()
    completed: list[bool] = []
    screen = _screen(manager, on_complete=lambda: completed.append(True))

    confirmation = screen.select(DeleteRow())
    assert isinstance(confirmation, DeletionConfirmation)
    assert confirmation.confirm_action.destructive

    confirmation.confirm()
    assert len(manager.deletions) == 1
    assert completed == []

    manager.deletions[0]()
    assert completed == [True]


def test_deletion_completion_goes_through_dispatcher() -> None:
    manager = _Manager()
    queued: list[Callable[[], None]] = []
    completed: list[bool] = []
    screen = _screen(
        manager,
        on_complete=lambda: completed.append(True),
        dispatch_main=queued.append,
    )

    confirmation = screen.select(DeleteRow())
    assert isinstance(confirmation, DeletionConfirmation)
    confirmation.confirm()
    manager.deletions[0]()
    assert completed == []
    assert len(queued) == 1

    queued[0]()
    assert completed == [True]


def test_cancel_deletion_does_nothing() -> None:
    manager = _Manager()
    completed: list[bool] = []
    screen = _screen(manager, on_complete=lambda: completed.append(True))
    confirmation = screen.select(DeleteRow())
    assert isinstance(confirmation, DeletionConfirmation)
    confirmation.cancel()
    assert manager.deletions == []
    assert completed == []


def test_deletion_prompt_acts_only_once() -> None:
    manager = _Manager()
    completed: list[bool] = []
    screen = _screen(manager, on_complete=lambda: completed.append(True))
    confirmation = screen.select(DeleteRow())
    assert isinstance(confirmation, DeletionConfirmation)

    confirmation.confirm()
    confirmation.confirm()
    for callback in manager.deletions:
        callback()

    assert len(manager.deletions) == 1
    assert completed == [True]
    assert confirmation.resolved


def test_confirm_after_cancel_is_ignored() -> None:
    manager = _Manager()
    screen = _screen(manager)
    confirmation = screen.select(DeleteRow())
    assert isinstance(confirmation, DeletionConfirmation)
    confirmation.cancel()
    confirmation.confirm()
    assert manager.deletions == []


def test_done_without_host_is_noop() -> None:
    _screen(_Manager()).done()


def test_done_notifies_host() -> None:
    completed: list[bool] = []
    _screen(_Manager(), on_complete=lambda: completed.append(True)).done()
    assert completed == [True]


@pytest.mark.parametrize("allows_deletion", [True, False])
def test_render_text(allows_deletion: bool) -> None:
    screen = _screen(_Manager(), allows_deletion=allows_deletion)
    text = render_text(screen)
    assert text.splitlines()[0] == "Dexcom Share"
    assert f"Credentials: {TAP_TO_SET} >" in text
    assert "LATEST READING" in text
    assert ("[ Delete CGM ]" in text) is allows_deletion
