import logging
import math
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from models.cell import DateCell, EmptyCell, NumberCell, TextCell, to_cell

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_CURRENCY_RE = re.compile(r"EUR|€", re.IGNORECASE)
_MINUS_SIGNS = ("-", "−")


def format_currency(amount: float, symbol: str = "€") -> str:
    """Format in Spanish style, e.g. '1.234,56 €'."""
    text = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if amount < 0 else ""
    return f"{sign}{text} {symbol}"


def format_signed(amount: float, symbol: str = "€") -> str:
    """Format with +/- sign."""
    sign = "+" if amount >= 0 else "-"
    return f"{sign}{format_currency(abs(amount), symbol)}"


def money2(value: float) -> float:
    """Round half-up to cents."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def parse_amount_es(value: Any, negative_only: bool = False) -> float:
    """Parse a Spanish-formatted amount ('1.234,56 EUR', '−12,50') from a cell.

    Unparseable input yields 0.0. With negative_only, anything that is not a
    negative amount yields 0.0 as well.
    """
    cell = to_cell(value)
    if isinstance(cell, NumberCell):
        number = cell.value
        if not math.isfinite(number):
            return 0.0
        if negative_only and number >= 0:
            return 0.0
        return number
    if isinstance(cell, (DateCell, EmptyCell)):
        return 0.0

    text = cell.value
    if negative_only and not any(sign in text for sign in _MINUS_SIGNS):
        return 0.0
    cleaned = _WHITESPACE_RE.sub("", text)
    cleaned = _CURRENCY_RE.sub("", cleaned)
    cleaned = cleaned.replace(".", "").replace(",", ".").replace("−", "-")
    try:
        number = float(cleaned)
    except ValueError:
        logger.debug("Unparseable amount %r", text)
        return 0.0
    if not math.isfinite(number):
        return 0.0
    if negative_only and number >= 0:
        return 0.0
    return number


def parse_user_amount(text: str) -> float | None:
    """Parse an amount typed in a form, accepting '3,50' or '3.50'. None on failure."""
    text = (text or "").strip().replace("€", "").replace(" ", "")
    if not text:
        return None
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None
