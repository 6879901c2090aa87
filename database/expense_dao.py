from typing import Optional
from database.db_manager import DatabaseManager
from models.category import Category
from models.expense import Expense, ExpenseFilter


class ExpenseDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db
        self.lock = db.write_lock

    def _row_to_model(self, row) -> Expense:
        return Expense(
            id=row["id"],
            amount=row["amount"],
            description=row["description"],
            category_id=row["category_id"],
            persona=row["persona"],
            date=row["date"],
            created_at=row["created_at"],
            active=bool(row["active"]),
            category=Category(
                id=row["category_id"],
                name=row["category_name"],
                color=row["category_color"],
                description=row["category_description"],
                active=bool(row["category_active"]),
                created_at=row["category_created_at"],
            ),
        )

    def _select(self) -> str:
        return """
            SELECT e.*,
                   c.name        AS category_name,
                   c.color       AS category_color,
                   c.description AS category_description,
                   c.active      AS category_active,
                   c.created_at  AS category_created_at
            FROM expenses e
            JOIN categories c ON e.category_id = c.id
        """

    def _where(self, flt: ExpenseFilter) -> tuple[str, list]:
        sql = " WHERE e.active = 1"
        params: list = []
        if flt.persona:
            sql += " AND e.persona = ?"
            params.append(flt.persona)
        if flt.category_id is not None:
            sql += " AND e.category_id = ?"
            params.append(flt.category_id)
        if flt.date_from:
            sql += " AND substr(e.date, 1, 10) >= ?"
            params.append(flt.date_from)
        if flt.date_to:
            sql += " AND substr(e.date, 1, 10) <= ?"
            params.append(flt.date_to)
        if flt.amount_min is not None:
            sql += " AND e.amount >= ?"
            params.append(flt.amount_min)
        if flt.amount_max is not None:
            sql += " AND e.amount <= ?"
            params.append(flt.amount_max)
        if flt.description:
            # instr() is case-sensitive, unlike LIKE
            sql += " AND instr(e.description, ?) > 0"
            params.append(flt.description)
        return sql, params

    def count(self, flt: ExpenseFilter) -> int:
        where, params = self._where(flt)
        conn = self._db.get_connection()
        row = conn.execute("SELECT COUNT(*) FROM expenses e" + where, params).fetchone()
        return row[0]

    def search(self, flt: ExpenseFilter, limit: int | None = None, offset: int = 0) -> list[Expense]:
        where, params = self._where(flt)
        sql = self._select() + where + " ORDER BY e.date DESC, e.id DESC"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params = params + [limit, offset]
        conn = self._db.get_connection()
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, expense_id: int) -> Optional[Expense]:
        conn = self._db.get_connection()
        row = conn.execute(
            self._select() + " WHERE e.id = ?", (expense_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(
        self,
        amount: float,
        description: str,
        category_id: int,
        persona: str,
        date: str,
    ) -> Expense:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO expenses (amount, description, category_id, persona, date)
               VALUES (?, ?, ?, ?, ?)""",
            (amount, description, category_id, persona, date),
        )
        conn.commit()
        return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        expense_id: int,
        amount: float,
        description: str,
        category_id: int,
        persona: str,
        date: str,
        active: bool = True,
    ) -> Expense:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE expenses
               SET amount=?, description=?, category_id=?, persona=?, date=?, active=?
               WHERE id=?""",
            (amount, description, category_id, persona, date,
             1 if active else 0, expense_id),
        )
        conn.commit()
        return self.get_by_id(expense_id)

    def deactivate(self, expense_id: int):
        conn = self._db.get_connection()
        conn.execute("UPDATE expenses SET active = 0 WHERE id = ?", (expense_id,))
        conn.commit()

    # ── Aggregates (active expenses only) ────────────────────────────────────

    def get_totals(self) -> dict:
        conn = self._db.get_connection()
        row = conn.execute(
            """SELECT COALESCE(SUM(amount), 0) AS total,
                      COUNT(*)                 AS count
               FROM expenses
               WHERE active = 1"""
        ).fetchone()
        return {"total": row["total"], "count": row["count"]}

    def get_totals_by_category(self, category_id: int | None = None) -> list[dict]:
        """[{category_id, category_name, category_color, total, count}] ordered by total desc."""
        conn = self._db.get_connection()
        where = "AND e.category_id = ?" if category_id is not None else ""
        params = [category_id] if category_id is not None else []
        rows = conn.execute(
            f"""SELECT c.id    AS category_id,
                       c.name  AS category_name,
                       c.color AS category_color,
                       SUM(e.amount) AS total,
                       COUNT(*)      AS count
                FROM expenses e
                JOIN categories c ON e.category_id = c.id
                WHERE e.active = 1
                  {where}
                GROUP BY c.id
                ORDER BY total DESC, c.id ASC""",
            params,
        ).fetchall()
        return [dict(r) for r in rows]

    def get_most_used_categories(self, top: int) -> list[dict]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT c.id    AS category_id,
                      c.name  AS category_name,
                      c.color AS category_color,
                      SUM(e.amount) AS total,
                      COUNT(*)      AS count
               FROM expenses e
               JOIN categories c ON e.category_id = c.id
               WHERE e.active = 1
               GROUP BY c.id
               ORDER BY count DESC, total DESC, c.id ASC
               LIMIT ?""",
            (top,),
        ).fetchall()
        return [dict(r) for r in rows]

    def get_totals_by_persona(self) -> list[dict]:
        """[{persona, total, count, first_expense, last_expense}] ordered by total desc."""
        conn = self._db.get_connection()
        rows = conn.execute(
            """SELECT persona,
                      SUM(amount) AS total,
                      COUNT(*)    AS count,
                      MIN(date)   AS first_expense,
                      MAX(date)   AS last_expense
               FROM expenses
               WHERE active = 1
               GROUP BY persona
               ORDER BY total DESC, persona ASC"""
        ).fetchall()
        return [dict(r) for r in rows]
