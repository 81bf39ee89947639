"""CLI para ver la pantalla de configuracion de Share en texto."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import pandas as pd
from dateutil import tz

from share_client_ui.manager import ShareClientManager
from share_client_ui.model import GlucoseTrend, GlucoseUnit
from share_client_ui.preferences import DisplayGlucosePreference
from share_client_ui.screen import SettingsScreen, render_text
from share_client_ui.share_service import credential_form_fields
from share_client_ui.sources.share_export import export_source
from share_client_ui.storage import AppConfig, SQLiteStore
from share_client_ui.strings import NO_VALUE

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Dexcom Share CGM settings (text rendering)."
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["show", "history", "fields"],
        default="show",
        help="show: settings table; history: stored readings; fields: login form.",
    )
    parser.add_argument(
        "--db",
        default=str(Path.cwd() / "share_client_ui.sqlite3"),
        help="SQLite file with config and stored readings.",
    )
    parser.add_argument(
        "--export-dir",
        default=None,
        help="Folder with share_*.json exports (overrides stored config).",
    )
    parser.add_argument(
        "--unit",
        choices=[unit.value for unit in GlucoseUnit],
        default=None,
        help="Display unit (overrides stored config).",
    )
    parser.add_argument(
        "--allow-deletion",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Show the Delete CGM section.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=12,
        help="Readings shown by history (newest last).",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Persist --unit/--export-dir/--allow-deletion as the new config.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="More logging (-v info, -vv debug).",
    )
    return parser.parse_args(argv)


def configure_logging(verbosity: int) -> None:
    """Map -v counts to logging levels on stderr."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def effective_config(ns: argparse.Namespace, stored: AppConfig) -> AppConfig:
    """Stored config with command-line overrides applied."""
    return AppConfig(
        glucose_unit=GlucoseUnit.parse(ns.unit) if ns.unit else stored.glucose_unit,
        allows_deletion=(
            stored.allows_deletion if ns.allow_deletion is None else ns.allow_deletion
        ),
        export_dir=stored.export_dir if ns.export_dir is None else ns.export_dir,
    )


def render_fields() -> str:
    lines = []
    for field in credential_form_fields():
        flags = ["secret"] if field.is_secret else []
        flags.append(f"keyboard={field.keyboard_type.value}")
        lines.append(f"{field.title} ({', '.join(flags)})")
        for option in field.options or ():
            lines.append(f"  - {option.title} [{option.value}]")
    return "\n".join(lines)


def render_history(
    readings: pd.DataFrame, preference: DisplayGlucosePreference, limit: int
) -> str:
    """Tabla de texto con las ultimas ``limit`` lecturas guardadas."""
    if readings.empty or limit <= 0:
        return "No stored readings."
    view = readings.sort_values("timestamp").tail(limit)
    local_tz = tz.tzlocal()
    table = pd.DataFrame(
        {
            "date": view["timestamp"].map(
                lambda ts: ts.astimezone(local_tz).strftime("%Y-%m-%d %H:%M")
            ),
            "glucose": view["glucose_mg_dl"].map(preference.format),
            "trend": view["trend"].map(_trend_text),
        }
    )
    return table.to_string(index=False)


def _trend_text(value: object) -> str:
    if value is None or pd.isna(value):
        return NO_VALUE
    trend = GlucoseTrend.from_share(int(value))
    if trend is None:
        return NO_VALUE
    return f"{trend.symbol} {trend.localized_description}"


def main(argv: list[str] | None = None) -> int:
    """Run the settings CLI.

    Returns:
        Exit code (0 on success).
    """
    ns = parse_args(argv)
    configure_logging(ns.verbose)

    if ns.command == "fields":
        print(render_fields())
        return 0

    store = SQLiteStore(Path(ns.db).expanduser())
    config = effective_config(ns, store.load_config())
    if ns.save:
        store.save_config(config)
        logger.info("Saved config %s", config)
    manager = ShareClientManager(store=store)

    if config.export_dir:
        source = export_source(config.export_dir)
        export_file = source.newest_json()
        manager.backfill(source.load_readings(export_file))
        logger.info("Loaded Share export %s", export_file)

    preference = DisplayGlucosePreference(config.glucose_unit)
    if ns.command == "history":
        print(render_history(store.load_readings_frame(), preference, ns.limit))
        return 0

    with SettingsScreen(manager, preference, config.allows_deletion) as screen:
        print(render_text(screen))
    return 0
