"""Lectura de exportaciones JSON de Dexcom Share."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from dateutil import tz

from share_client_ui.model import GlucoseReading, GlucoseTrend
from share_client_ui.sources.base import DataSource, SourcePaths

logger = logging.getLogger(__name__)

_SHARE_DATE = re.compile(r"Date\((?P<ms>-?\d+)(?P<offset>[+-]\d{4})?\)")


@dataclass(frozen=True)
class ShareExportPaths(SourcePaths):
    """Paths for Share JSON exports."""

    # root: folder containing share_*.json


class ShareExportSource(DataSource):
    """Share ``ReadPublisherLatestGlucoseValues`` JSON source."""

    def validate(self) -> None:
        """Validate that the export directory exists."""
        if not self._paths.root.exists():
            raise FileNotFoundError(str(self._paths.root))

    def newest_json(self) -> Path:
        """Return newest share_*.json by mtime."""
        files = sorted(
            self._paths.root.glob("share_*.json"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        if not files:
            raise FileNotFoundError(f"No share_*.json in {self._paths.root}")
        return files[0]

    def load_readings(self, path: Path) -> list[GlucoseReading]:
        """Parse a Share JSON export into typed readings.

        Args:
            path: Path to JSON file.

        Returns:
            Readings sorted by timestamp.

        Raises:
            ValueError: If the JSON shape or a timestamp is invalid.
        """
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError("Share JSON must be a list")

        out: list[GlucoseReading] = []
        for item in raw:
            reading = _item_to_reading(item)
            if reading is not None:
                out.append(reading)
        out.sort(key=lambda r: r.timestamp)
        logger.debug("Loaded %d readings from %s", len(out), path)
        return out


def _item_to_reading(item: Any) -> GlucoseReading | None:
    """Convierte un item dict en GlucoseReading; None si falta el valor."""
    if not isinstance(item, dict):
        return None
    value = item.get("Value")
    if value is None:
        return None
    return GlucoseReading(
        quantity=float(value),
        timestamp=parse_share_date(item.get("WT") or item.get("ST")),
        trend=GlucoseTrend.from_share(item.get("Trend")),
    )


def parse_share_date(raw: Any) -> datetime:
    """Parse ``Date(1690000000000)`` / ``/Date(...-0700)/`` into an aware UTC datetime."""
    if not isinstance(raw, str):
        raise ValueError(f"Missing Share timestamp: {raw!r}")
    match = _SHARE_DATE.search(raw)
    if match is None:
        raise ValueError(f"Invalid Share timestamp: {raw!r}")
    # The epoch is UTC; the offset only describes the sender's zone.
    return datetime.fromtimestamp(int(match["ms"]) / 1000, tz=tz.UTC)


def export_source(export_dir: str) -> ShareExportSource:
    """Build the source for the configured export folder.

    Raises:
        ValueError: If no folder is configured.
        FileNotFoundError: If the folder does not exist.
    """
    if not export_dir.strip():
        raise ValueError("No Share export folder configured")
    source = ShareExportSource(ShareExportPaths(root=Path(export_dir).expanduser()))
    source.validate()
    return source
