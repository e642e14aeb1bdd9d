import logging
import sqlite3
from contextlib import contextmanager

from config import DB_PATH

logger = logging.getLogger(__name__)


def init_db():
    with sqlite3.connect(DB_PATH) as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS headache_entries (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                date       TEXT    NOT NULL,
                severity   INTEGER NOT NULL CHECK (severity BETWEEN 1 AND 5),
                notes      TEXT    NOT NULL DEFAULT '',
                created_at TEXT    NOT NULL DEFAULT ''
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS headache_medications (
                id       INTEGER PRIMARY KEY AUTOINCREMENT,
                entry_id INTEGER NOT NULL REFERENCES headache_entries(id),
                position INTEGER NOT NULL DEFAULT 0,
                name     TEXT    NOT NULL,
                dosage   TEXT    NOT NULL DEFAULT ''
            )
        """)
        # Migrate: add columns if not present
        cols = [row[1] for row in conn.execute("PRAGMA table_info(headache_entries)")]
        if "triggers" not in cols:
            conn.execute(
                "ALTER TABLE headache_entries ADD COLUMN triggers TEXT NOT NULL DEFAULT '[]'"
            )
        if "updated_at" not in cols:
            conn.execute(
                "ALTER TABLE headache_entries ADD COLUMN updated_at TEXT NOT NULL DEFAULT ''"
            )
            conn.execute("UPDATE headache_entries SET updated_at = created_at WHERE updated_at = ''")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_headache_entries_date ON headache_entries(date)")
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_headache_meds_entry_id"
            " ON headache_medications(entry_id)"
        )
        conn.commit()
    logger.debug("Database schema ready at %s", DB_PATH)


@contextmanager
def get_db():
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def ping():
    with get_db() as conn:
        conn.execute("SELECT 1").fetchone()
