"""Textos de interfaz y formato de fechas para la pantalla de Share."""

from __future__ import annotations

from datetime import datetime

from dateutil import tz

TAP_TO_SET = "Tap to set"
NO_VALUE = "–"

_STRINGS: dict[str, str] = {
    "credentials": "Credentials",
    "glucose": "Glucose",
    "date": "Date",
    "trend": "Trend",
    "latest_reading": "Latest Reading",
    "delete_cgm": "Delete CGM",
    "delete_cgm_confirm": "Are you sure you want to delete this CGM?",
    "cancel": "Cancel",
    "done": "Done",
    "username": "Username",
    "password": "Password",
    "server": "Server",
    "server_us": "US",
    "server_apac": "APAC",
    "server_worldwide": "Worldwide",
    "title": "Dexcom Share",
    "today": "Today",
    "yesterday": "Yesterday",
    "tomorrow": "Tomorrow",
    "trend_double_up": "Rising very fast",
    "trend_single_up": "Rising fast",
    "trend_forty_five_up": "Rising",
    "trend_flat": "Flat",
    "trend_forty_five_down": "Falling",
    "trend_single_down": "Falling fast",
    "trend_double_down": "Falling very fast",
}


def localized(key: str) -> str:
    """Devuelve el texto para ``key`` (la propia clave si no existe)."""
    return _STRINGS.get(key, key)


def format_relative_datetime(value: datetime, now: datetime | None = None) -> str:
    """Format a timestamp with long date/time styles and relative day names.

    Args:
        value: Timestamp to render. Naive values are taken as local time.
        now: Reference instant (defaults to the current local time).

    Returns:
        ``"Today at 3:04:05 PM"`` style text for today, yesterday and
        tomorrow; ``"October 17, 2026 at 3:04:05 PM"`` otherwise.
    """
    local_tz = tz.tzlocal()
    if value.tzinfo is None:
        local = value.replace(tzinfo=local_tz)
    else:
        local = value.astimezone(local_tz)
    reference = datetime.now(tz=local_tz) if now is None else now.astimezone(local_tz)

    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    time_text = f"{hour}:{local:%M:%S} {meridiem} {local.tzname() or ''}".rstrip()

    day_offset = (local.date() - reference.date()).days
    relative = {
        0: localized("today"),
        -1: localized("yesterday"),
        1: localized("tomorrow"),
    }.get(day_offset)
    if relative is not None:
        return f"{relative} at {time_text}"
    return f"{local:%B} {local.day}, {local.year} at {time_text}"
