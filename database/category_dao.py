import sqlite3
from typing import Optional

from database.db_manager import DatabaseManager
from models.category import Category


class CategoryDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db
        self.lock = db.write_lock
        self._active_cache: list | None = None

    def _invalidate_cache(self):
        self._active_cache = None

    def _row_to_model(self, row) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            color=row["color"],
            description=row["description"],
            active=bool(row["active"]),
            created_at=row["created_at"],
        )

    def get_active(self) -> list[Category]:
        if self._active_cache is None:
            conn = self._db.get_connection()
            rows = conn.execute(
                "SELECT * FROM categories WHERE active = 1 ORDER BY name"
            ).fetchall()
            self._active_cache = [self._row_to_model(r) for r in rows]
        return list(self._active_cache)

    def get_by_id(self, category_id: int) -> Optional[Category]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM categories WHERE id = ?", (category_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_all(self) -> list[Category]:
        """Active and inactive categories."""
        conn = self._db.get_connection()
        rows = conn.execute("SELECT * FROM categories ORDER BY name").fetchall()
        return [self._row_to_model(r) for r in rows]

    def count_active_expenses(self, category_id: int) -> int:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT COUNT(*) FROM expenses WHERE category_id = ? AND active = 1",
            (category_id,),
        ).fetchone()
        return row[0]

    def create(self, name: str, color: str, description: str | None = None) -> Category:
        conn = self._db.get_connection()
        try:
            cursor = conn.execute(
                "INSERT INTO categories(name, description, color) VALUES (?, ?, ?)",
                (name, description, color),
            )
        except sqlite3.IntegrityError:
            conn.rollback()
            raise
        conn.commit()
        self._invalidate_cache()
        return self.get_by_id(cursor.lastrowid)

    def update(
        self,
        category_id: int,
        name: str,
        color: str,
        description: str | None = None,
        active: bool = True,
    ) -> Category:
        conn = self._db.get_connection()
        try:
            conn.execute(
                "UPDATE categories SET name=?, description=?, color=?, active=? WHERE id=?",
                (name, description, color, 1 if active else 0, category_id),
            )
        except sqlite3.IntegrityError:
            conn.rollback()
            raise
        conn.commit()
        self._invalidate_cache()
        return self.get_by_id(category_id)

    def deactivate(self, category_id: int):
        conn = self._db.get_connection()
        conn.execute("UPDATE categories SET active = 0 WHERE id = ?", (category_id,))
        conn.commit()
        self._invalidate_cache()
