"""Mercadona receipt text parsing.

Products appear on the receipt in three shapes, always with quantity,
description and prices glued together without separators:

    1TALL PIT FI3,39                simple: qty, description, price
    1BRÒQUIL                        weighted: qty and description, then
    0,498 kg2,90 €/kg1,44           weight, price per kg, line amount
    2RUCA 50 G0,831,66              quantity-priced: unit price and line amount

Lines like "1PASTANAGA 500 G0,80", whose description carries digits, fall
through to a last single-price rule.
"""
import logging
import re
from datetime import datetime
from typing import Optional, Sequence

from models.receipt import ParsedReceipt, ParsedReceiptProduct
from utils.currency import money2, parse_amount_es

logger = logging.getLogger(__name__)

STORE_NAME = "MERCADONA"

_UPPER = r"A-ZÀ-ÖØ-Þ"
_LETTERS = rf"[{_UPPER}][{_UPPER} .'/-]*?"
_PRICE = r"\d+[.,]\d{2}"
_CURRENCY = r"(?:€|EUR)"

_DATETIME_RE = re.compile(r"(\d{2})/(\d{2})/(\d{4})\s+(\d{2}):(\d{2})")
_TOTAL_RE = re.compile(rf"TOTAL\s*\(\s*{_CURRENCY}\s*\)\s*(\d[\d.]*,\d{{2}})")

_SIMPLE_RE = re.compile(rf"^(\d+)({_LETTERS})\s*(\d+(?:[.,]\d+)?)$")
_WEIGHTED_HEAD_RE = re.compile(rf"^(\d+)({_LETTERS})$")
_WEIGHTED_DETAIL_RE = re.compile(
    rf"^(\d+[.,]\d+)\s*kg\s*(\d+[.,]\d+)\s*{_CURRENCY}\s*/\s*kg\s*(\d+[.,]\d+)$",
    re.IGNORECASE,
)
_QUANTITY_PRICED_RE = re.compile(rf"^(\d+)(.+?)\s*({_PRICE})({_PRICE})$")
_SIZED_RE = re.compile(rf"^([1-9]\d*?)([0-9{_UPPER}].*?)\s*({_PRICE})$")


def _number(token: str) -> float:
    return parse_amount_es(token)


def _format_weight(weight: float) -> str:
    return f"{weight:g}"


def split_receipt_lines(text: str) -> list[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def extract_purchase_datetime(lines: Sequence[str]) -> Optional[datetime]:
    for line in lines:
        for match in _DATETIME_RE.finditer(line):
            day, month, year, hour, minute = (int(g) for g in match.groups())
            try:
                return datetime(year, month, day, hour, minute)
            except ValueError:
                continue
    return None


def extract_total(lines: Sequence[str]) -> Optional[float]:
    for line in lines:
        match = _TOTAL_RE.search(line)
        if match:
            return _number(match.group(1))
    return None


def _match_simple(line: str) -> Optional[ParsedReceiptProduct]:
    match = _SIMPLE_RE.match(line)
    if not match:
        return None
    quantity = int(match.group(1))
    price = _number(match.group(3))
    return ParsedReceiptProduct(
        description=match.group(2).strip(),
        quantity=quantity,
        unit_price=price,
        amount=money2(price * quantity),
    )


def _match_weighted(line: str, next_line: Optional[str]) -> Optional[ParsedReceiptProduct]:
    if next_line is None:
        return None
    head = _WEIGHTED_HEAD_RE.match(line)
    if not head:
        return None
    detail = _WEIGHTED_DETAIL_RE.match(next_line)
    if not detail:
        return None
    weight = _number(detail.group(1))
    return ParsedReceiptProduct(
        description=f"{head.group(2).strip()} ({_format_weight(weight)}kg)",
        quantity=int(head.group(1)),
        unit_price=_number(detail.group(2)),
        amount=_number(detail.group(3)),
    )


def _match_quantity_priced(line: str) -> Optional[ParsedReceiptProduct]:
    match = _QUANTITY_PRICED_RE.match(line)
    if not match or not _has_letter(match.group(2)):
        return None
    return ParsedReceiptProduct(
        description=match.group(2).strip(),
        quantity=int(match.group(1)),
        unit_price=_number(match.group(3)),
        amount=_number(match.group(4)),
    )


def _match_sized(line: str) -> Optional[ParsedReceiptProduct]:
    match = _SIZED_RE.match(line)
    if not match or not _has_letter(match.group(2)):
        return None
    quantity = int(match.group(1))
    price = _number(match.group(3))
    return ParsedReceiptProduct(
        description=match.group(2).strip(),
        quantity=quantity,
        unit_price=price,
        amount=money2(price * quantity),
    )


def _has_letter(text: str) -> bool:
    return any(ch.isalpha() for ch in text)


def parse_products(lines: Sequence[str]) -> list[ParsedReceiptProduct]:
    products: list[ParsedReceiptProduct] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        next_line = lines[i + 1] if i + 1 < len(lines) else None

        product = _match_simple(line)
        if product is None:
            product = _match_weighted(line, next_line)
            if product is not None:
                products.append(product)
                i += 2
                continue
        if product is None:
            product = _match_quantity_priced(line)
        if product is None:
            product = _match_sized(line)

        if product is not None:
            products.append(product)
        else:
            logger.debug("Ignored receipt line %r", line)
        i += 1
    return products


def parse_receipt_lines(lines: Sequence[str]) -> ParsedReceipt:
    receipt = ParsedReceipt(
        purchased_at=extract_purchase_datetime(lines),
        products=parse_products(lines),
        total=extract_total(lines),
        store=STORE_NAME if any(STORE_NAME in line.upper() for line in lines) else None,
    )
    if receipt.total is not None and abs(receipt.total - receipt.products_total) > 0.01:
        logger.warning(
            "Receipt total %.2f differs from the sum of products %.2f",
            receipt.total, receipt.products_total,
        )
    logger.info("Parsed receipt: %d products, total %s", len(receipt.products), receipt.total)
    return receipt


def parse_receipt_text(text: str) -> ParsedReceipt:
    return parse_receipt_lines(split_receipt_lines(text))
