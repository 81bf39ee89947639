"""Persistencia SQLite para configuracion y lecturas de Share."""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass
from hashlib import sha256
from pathlib import Path

import pandas as pd
from dateutil import parser as date_parser
from dateutil import tz

from share_client_ui.model import GlucoseReading, GlucoseTrend, GlucoseUnit

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS app_config (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS readings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    row_hash TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    glucose_mg_dl REAL NOT NULL,
    trend INTEGER
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_readings_row_hash_unique
ON readings(row_hash);
"""


@dataclass(frozen=True)
class AppConfig:
    """Configuracion persistida de la app."""

    glucose_unit: GlucoseUnit = GlucoseUnit.MG_DL
    allows_deletion: bool = True
    export_dir: str = ""


class SQLiteStore:
    """Repositorio SQLite para la app."""

    def __init__(self, db_path: Path) -> None:
        """Create store and ensure schema exists."""
        self._db_path = db_path
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.commit()

    def load_config(self) -> AppConfig:
        """Devuelve configuracion guardada o defaults."""
        with self._connect() as conn:
            rows = conn.execute("SELECT key, value FROM app_config").fetchall()
        values = {row["key"]: row["value"] for row in rows}
        defaults = AppConfig()
        return AppConfig(
            glucose_unit=_parse_unit(values.get("glucose_unit"), defaults.glucose_unit),
            allows_deletion=_parse_bool(
                values.get("allows_deletion"), defaults.allows_deletion
            ),
            export_dir=values.get("export_dir", defaults.export_dir),
        )

    def save_config(self, config: AppConfig) -> None:
        """Guarda la configuracion en tabla key/value."""
        payload = {
            "glucose_unit": config.glucose_unit.value,
            "allows_deletion": json.dumps(config.allows_deletion),
            "export_dir": config.export_dir,
        }
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO app_config(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                payload.items(),
            )
            conn.commit()

    def save_readings(self, readings: Sequence[GlucoseReading]) -> int:
        """Guarda lecturas nuevas. Devuelve cuantas filas se insertaron."""
        rows = [_reading_row(reading) for reading in readings]
        if not rows:
            return 0
        with self._connect() as conn:
            before = conn.total_changes
            conn.executemany(
                """
                INSERT OR IGNORE INTO readings(
                    row_hash, timestamp, glucose_mg_dl, trend
                ) VALUES (?, ?, ?, ?)
                """,
                rows,
            )
            inserted = conn.total_changes - before
            conn.commit()
        logger.debug("Stored %d of %d readings", inserted, len(rows))
        return inserted

    def load_readings_frame(self) -> pd.DataFrame:
        """Carga todas las lecturas como DataFrame ordenado por fecha."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT timestamp, glucose_mg_dl, trend
                FROM readings
                ORDER BY timestamp
                """
            ).fetchall()
        out = pd.DataFrame(
            [dict(row) for row in rows],
            columns=["timestamp", "glucose_mg_dl", "trend"],
        )
        if out.empty:
            return out
        out["timestamp"] = pd.to_datetime(out["timestamp"], utc=True)
        return out

    def latest_reading(self) -> GlucoseReading | None:
        """Lectura mas reciente guardada, o None."""
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT timestamp, glucose_mg_dl, trend
                FROM readings
                ORDER BY timestamp DESC LIMIT 1
                """
            ).fetchone()
        if row is None:
            return None
        return GlucoseReading(
            quantity=float(row["glucose_mg_dl"]),
            timestamp=date_parser.isoparse(row["timestamp"]),
            trend=GlucoseTrend.from_share(row["trend"]),
        )


def _parse_unit(raw: str | None, default: GlucoseUnit) -> GlucoseUnit:
    if raw is None:
        return default
    try:
        return GlucoseUnit.parse(raw)
    except ValueError:
        logger.warning("Ignoring stored glucose unit %r", raw)
        return default


def _parse_bool(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return default
    return parsed if isinstance(parsed, bool) else default


def _reading_row(reading: GlucoseReading) -> tuple[object, ...]:
    timestamp = reading.timestamp.astimezone(tz.UTC)
    values = (
        timestamp.isoformat(),
        reading.quantity,
        reading.trend.value if reading.trend is not None else None,
    )
    return (_row_hash(values), *values)


def _row_hash(values: tuple[object, ...]) -> str:
    payload = json.dumps(values, ensure_ascii=True, sort_keys=False, default=str)
    return sha256(payload.encode("utf-8")).hexdigest()
