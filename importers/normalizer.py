"""Turn parsed receipt products and statement movements into expense drafts.

The ledger keeps one expense per purchased unit, so a receipt line with
quantity n becomes n drafts of amount / n each. The quotient is not
rounded or reconciled: the unit amounts only add up approximately to the
line amount. A unit below half a cent rounds to 0,00 and is refused
when the draft is saved.
"""
import logging
from datetime import datetime, time
from typing import Iterable, Optional

from models.expense import ExpenseDraft
from models.movement import ParsedMovement
from models.receipt import ParsedReceipt, ParsedReceiptProduct
from utils.constants import EMPTY_CONCEPT
from utils.date_helpers import format_datetime

logger = logging.getLogger(__name__)


def expand_product(
    product: ParsedReceiptProduct,
    category_id: int,
    persona: str,
    date: Optional[str] = None,
) -> list[ExpenseDraft]:
    quantity = product.quantity
    if quantity <= 1:
        return [ExpenseDraft(
            amount=product.amount,
            description=product.description,
            category_id=category_id,
            persona=persona,
            date=date,
        )]
    unit_amount = product.amount / quantity
    if 0 < unit_amount < 0.005:
        logger.warning(
            "%s: %.2f over %d units rounds to 0.00 per unit",
            product.description, product.amount, quantity,
        )
    return [
        ExpenseDraft(
            amount=unit_amount,
            description=f"{product.description} (unit {i} of {quantity})",
            category_id=category_id,
            persona=persona,
            date=date,
        )
        for i in range(1, quantity + 1)
    ]


def receipt_to_drafts(receipt: ParsedReceipt, category_id: int, persona: str) -> list[ExpenseDraft]:
    date = format_datetime(receipt.purchased_at) if receipt.purchased_at else None
    drafts: list[ExpenseDraft] = []
    for product in receipt.products:
        drafts.extend(expand_product(product, category_id, persona, date))
    return drafts


def movement_to_draft(movement: ParsedMovement, category_id: int, persona: str) -> ExpenseDraft:
    date = None
    if movement.operation_date is not None:
        date = format_datetime(datetime.combine(movement.operation_date, time()))
    return ExpenseDraft(
        amount=movement.amount,
        description=movement.concept.strip() or EMPTY_CONCEPT,
        category_id=category_id,
        persona=persona,
        date=date,
    )


def movements_to_drafts(
    movements: Iterable[ParsedMovement], category_id: int, persona: str
) -> list[ExpenseDraft]:
    return [movement_to_draft(m, category_id, persona) for m in movements]
