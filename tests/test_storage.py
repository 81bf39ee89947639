from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

from dateutil import tz

from share_client_ui.model import GlucoseReading, GlucoseTrend, GlucoseUnit
from share_client_ui.storage import AppConfig, SQLiteStore

_T0 = datetime(2026, 1, 2, 8, 0, tzinfo=tz.UTC)


def test_store_config_defaults_and_round_trip(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    assert store.load_config() == AppConfig()

    config = AppConfig(
        glucose_unit=GlucoseUnit.MMOL_L,
        allows_deletion=False,
        export_dir="/data/share",
    )
    store.save_config(config)
    assert store.load_config() == config


def test_store_ignores_bad_config_values(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    with store._connect() as conn:
        conn.executemany(
            "INSERT INTO app_config(key, value) VALUES(?, ?)",
            [("glucose_unit", "g/L"), ("allows_deletion", "maybe")],
        )
        conn.commit()
    loaded = store.load_config()
    assert loaded.glucose_unit is GlucoseUnit.MG_DL
    assert loaded.allows_deletion is True


def test_store_readings_and_latest(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    assert store.latest_reading() is None
    assert store.load_readings_frame().empty

    readings = [
        GlucoseReading(123.0, _T0 + timedelta(minutes=5), GlucoseTrend.SINGLE_DOWN),
        GlucoseReading(130.0, _T0, None),
    ]
    assert store.save_readings(readings) == 2

    latest = store.latest_reading()
    assert latest == readings[0]

    df = store.load_readings_frame()
    assert df["glucose_mg_dl"].tolist() == [130.0, 123.0]
    assert df["trend"].isna().tolist() == [True, False]
    assert int(df["trend"].iloc[1]) == GlucoseTrend.SINGLE_DOWN.value


def test_store_skips_duplicate_readings(tmp_path: Path) -> None:
    store = SQLiteStore(tmp_path / "app.sqlite3")
    reading = GlucoseReading(100.0, _T0, GlucoseTrend.FLAT)
    assert store.save_readings([reading]) == 1
    assert store.save_readings([reading]) == 0
    assert store.save_readings([]) == 0
    assert len(store.load_readings_frame()) == 1
