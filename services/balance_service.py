import logging
import math
from typing import Optional

from database.balance_dao import BalanceDAO
from models.balance import Balance
from services.errors import ValidationError
from utils.currency import money2
from utils.date_helpers import format_datetime, now_str, parse_datetime

logger = logging.getLogger(__name__)


class BalanceService:
    def __init__(self, balance_dao: BalanceDAO):
        self._dao = balance_dao

    def get_current(self) -> Optional[Balance]:
        return self._dao.get_latest()

    def save_balance(self, amount: float, recorded_at: str | None = None) -> Balance:
        try:
            amount = float(amount)
        except (TypeError, ValueError):
            raise ValidationError("Balance must be a number.")
        if not math.isfinite(amount):
            raise ValidationError("Balance must be a finite number.")
        if recorded_at:
            parsed = parse_datetime(recorded_at)
            if parsed is None:
                raise ValidationError("Invalid balance date.")
            recorded_at = format_datetime(parsed)
        else:
            recorded_at = now_str()
        balance = self._dao.create(money2(amount), recorded_at)
        logger.info("Recorded balance %.2f at %s", balance.amount, balance.recorded_at)
        return balance
