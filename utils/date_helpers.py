import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Any

from models.cell import DateCell, EmptyCell, NumberCell, TextCell, to_cell
from utils.constants import DATE_FORMAT, DATETIME_FORMAT

logger = logging.getLogger(__name__)

# ── Display date format options ───────────────────────────────────────────────

DATE_FORMAT_OPTIONS = ["DD/MM/YYYY", "YYYY-MM-DD", "DD.MM.YYYY", "DD-MM-YYYY"]

_STRFTIME_MAP = {
    "DD/MM/YYYY": "%d/%m/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
    "DD.MM.YYYY": "%d.%m.%Y",
    "DD-MM-YYYY": "%d-%m-%Y",
}

_TKCAL_MAP = {
    "DD/MM/YYYY": "dd/mm/yyyy",
    "YYYY-MM-DD": "yyyy-mm-dd",
    "DD.MM.YYYY": "dd.mm.yyyy",
    "DD-MM-YYYY": "dd-mm-yyyy",
}

# Excel 1900 date system. Serial 60 is the phantom 1900-02-29.
_EXCEL_EPOCH = date(1899, 12, 30)
_EXCEL_EPOCH_EARLY = date(1899, 12, 31)
_EXCEL_LEAP_BUG_SERIAL = 60
_EXCEL_FIRST_REAL_MARCH = date(1900, 3, 1)

_DATE_SPLIT_RE = re.compile(r"[/-]")


def today() -> date:
    return date.today()


def today_str() -> str:
    return date.today().strftime(DATE_FORMAT)


def now_str() -> str:
    return datetime.now().replace(microsecond=0).strftime(DATETIME_FORMAT)


def parse_date(date_str: str) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure."""
    if not date_str:
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue
    return None


def parse_datetime(value: str) -> datetime | None:
    """Parse an ISO date or datetime string. A bare date means midnight."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        d = parse_date(value.strip())
        return datetime.combine(d, time()) if d else None
    return parsed.replace(tzinfo=None, microsecond=0)


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def format_datetime(dt: datetime) -> str:
    return dt.replace(microsecond=0).strftime(DATETIME_FORMAT)


def excel_serial_to_date(serial: float) -> date | None:
    """Convert an Excel serial day count to a calendar date; the time fraction is dropped."""
    days = int(serial)
    if days < 0:
        return None
    base = _EXCEL_EPOCH_EARLY if days < _EXCEL_LEAP_BUG_SERIAL else _EXCEL_EPOCH
    try:
        return base + timedelta(days=days)
    except OverflowError:
        return None


def date_to_excel_serial(d: date) -> int:
    if d < _EXCEL_FIRST_REAL_MARCH:
        return (d - _EXCEL_EPOCH_EARLY).days
    return (d - _EXCEL_EPOCH).days


def parse_date_es(value: Any) -> date | None:
    """Parse a statement date cell: native date, Excel serial or 'DD/MM/YYYY' text."""
    cell = to_cell(value)
    if isinstance(cell, DateCell):
        v = cell.value
        return v.date() if isinstance(v, datetime) else v
    if isinstance(cell, NumberCell):
        try:
            return excel_serial_to_date(cell.value)
        except (ValueError, OverflowError):
            return None
    if isinstance(cell, EmptyCell):
        return None
    return _parse_date_text(cell.value)


def _parse_date_text(text: str) -> date | None:
    token = text.strip().split()[0] if text.strip() else ""
    parts = _DATE_SPLIT_RE.split(token)
    if len(parts) != 3 or not all(p.isdecimal() for p in parts):
        logger.debug("Unparseable date %r", text)
        return None
    if len(parts[0]) == 4:
        year, month, day = (int(p) for p in parts)
    else:
        day, month, year = (int(p) for p in parts)
        if len(parts[2]) <= 2:
            year += 2000
    try:
        return date(year, month, day)
    except ValueError:
        logger.debug("Invalid calendar date %r", text)
        return None


def format_display_date(date_str: str, fmt_key: str = "DD/MM/YYYY") -> str:
    """Convert a stored YYYY-MM-DD[THH:MM:SS] string to the user-facing display format."""
    if not date_str:
        return date_str
    d = parse_date(date_str[:10])
    if d is None:
        return date_str
    return d.strftime(_STRFTIME_MAP.get(fmt_key, "%d/%m/%Y"))


def tkcal_date_pattern(fmt_key: str) -> str:
    """Return the tkcalendar date_pattern string for the given format key."""
    return _TKCAL_MAP.get(fmt_key, "dd/mm/yyyy")


def parse_display_date(display_str: str, fmt_key: str) -> date | None:
    """Parse a date in the given display format. Returns None on failure.

    Falls back to ISO 8601 parse if the display format doesn't match.
    """
    if not display_str:
        return None
    fmt = _STRFTIME_MAP.get(fmt_key, "%d/%m/%Y")
    try:
        return datetime.strptime(display_str.strip(), fmt).date()
    except ValueError:
        return parse_date(display_str)
