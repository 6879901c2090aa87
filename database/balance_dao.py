from typing import Optional
from database.db_manager import DatabaseManager
from models.balance import Balance


class BalanceDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Balance:
        return Balance(
            id=row["id"],
            amount=row["amount"],
            recorded_at=row["recorded_at"],
            created_at=row["created_at"],
        )

    def get_latest(self) -> Optional[Balance]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM balances ORDER BY recorded_at DESC, id DESC LIMIT 1"
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, amount: float, recorded_at: str) -> Balance:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "INSERT INTO balances(amount, recorded_at) VALUES (?, ?)",
            (amount, recorded_at),
        )
        conn.commit()
        row = conn.execute(
            "SELECT * FROM balances WHERE id = ?", (cursor.lastrowid,)
        ).fetchone()
        return self._row_to_model(row)
