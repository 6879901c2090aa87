import logging
import os
import sqlite3
import threading

from utils.constants import DB_FILE, DEFAULT_CATEGORIES

logger = logging.getLogger(__name__)


class DatabaseManager:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None
        # Held across check-then-write sequences by the services
        self.write_lock = threading.RLock()

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def initialize(self, seed: bool = True):
        """Create schema and seed defaults."""
        conn = self.get_connection()
        self._create_schema(conn)
        if seed:
            self._seed_defaults(conn)
        conn.commit()

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS categories (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                name        TEXT    NOT NULL UNIQUE COLLATE NOCASE,
                description TEXT,
                color       TEXT    NOT NULL DEFAULT '#3b82f6',
                active      INTEGER NOT NULL DEFAULT 1,
                created_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now', 'localtime'))
            );

            CREATE TABLE IF NOT EXISTS expenses (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                amount      REAL    NOT NULL CHECK(amount > 0),
                description TEXT    NOT NULL,
                category_id INTEGER NOT NULL REFERENCES categories(id) ON DELETE RESTRICT,
                persona     TEXT    NOT NULL CHECK(persona IN ('Ana','Valen')),
                date        TEXT    NOT NULL,
                active      INTEGER NOT NULL DEFAULT 1,
                created_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now', 'localtime'))
            );

            CREATE TABLE IF NOT EXISTS balances (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                amount      REAL    NOT NULL,
                recorded_at TEXT    NOT NULL,
                created_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now', 'localtime'))
            );

            CREATE INDEX IF NOT EXISTS idx_expenses_date        ON expenses(date);
            CREATE INDEX IF NOT EXISTS idx_expenses_category_id ON expenses(category_id);
            CREATE INDEX IF NOT EXISTS idx_expenses_persona     ON expenses(persona);
            CREATE INDEX IF NOT EXISTS idx_balances_recorded_at ON balances(recorded_at);
        """)

    def _seed_defaults(self, conn: sqlite3.Connection):
        for cat in DEFAULT_CATEGORIES:
            conn.execute(
                """INSERT OR IGNORE INTO categories(name, description, color)
                   VALUES (?, ?, ?)""",
                (cat["name"], cat["description"], cat["color"]),
            )

    @staticmethod
    def open_default(db_folder: str | None = None, seed: bool = True) -> "DatabaseManager":
        """Startup factory: opens (and creates if needed) gastos.db in db_folder or CWD."""
        if db_folder:
            os.makedirs(db_folder, exist_ok=True)
            db_path = os.path.join(db_folder, DB_FILE)
        else:
            db_path = DB_FILE
        db = DatabaseManager(db_path)
        db.initialize(seed=seed)
        logger.info("Database ready at %s", os.path.abspath(db_path))
        return db

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None
