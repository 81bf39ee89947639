"""CGM manager de Dexcom Share: credenciales, ultimo backfill y borrado."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Protocol

from share_client_ui.model import GlucoseReading
from share_client_ui.share_service import ShareService
from share_client_ui.storage import SQLiteStore
from share_client_ui.strings import localized

logger = logging.getLogger(__name__)


class CGMManagerDelegate(Protocol):
    """Host application hooks called by the manager."""

    def cgm_manager_did_update_state(self, manager: ShareClientManager) -> None: ...

    def cgm_manager_will_delete(self, manager: ShareClientManager) -> None: ...


class ShareClientManager:
    """Owns the Share credentials and the most recent backfilled reading."""

    def __init__(
        self,
        share_service: ShareService | None = None,
        *,
        store: SQLiteStore | None = None,
        delegate: CGMManagerDelegate | None = None,
    ) -> None:
        self._share_service = share_service or ShareService()
        self._store = store
        self.delegate = delegate
        self.latest_backfill: GlucoseReading | None = (
            store.latest_reading() if store is not None else None
        )

    @property
    def localized_title(self) -> str:
        return localized("title")

    @property
    def share_service(self) -> ShareService:
        return self._share_service

    @share_service.setter
    def share_service(self, service: ShareService) -> None:
        self._share_service = service
        logger.info(
            "Share service set (server=%s, authorized=%s)",
            service.server.value if service.server else None,
            service.is_authorized,
        )
        if self.delegate is not None:
            self.delegate.cgm_manager_did_update_state(self)

    def backfill(self, readings: Sequence[GlucoseReading]) -> GlucoseReading | None:
        """Record new readings; keeps the newest one as ``latest_backfill``."""
        if not readings:
            return self.latest_backfill
        newest = max(readings, key=lambda r: r.timestamp)
        current = self.latest_backfill
        is_newer = current is None or newest.timestamp > current.timestamp
        if self._store is not None:
            self._store.save_readings(readings)
        if is_newer:
            self.latest_backfill = newest
            logger.info("Latest backfill now %s", newest.timestamp.isoformat())
        return self.latest_backfill

    def notify_delegate_of_deletion(self, completion: Callable[[], None]) -> None:
        """Tell the delegate this CGM is going away, then call ``completion``."""
        logger.info("Deleting Share CGM manager")
        if self.delegate is not None:
            self.delegate.cgm_manager_will_delete(self)
        completion()
