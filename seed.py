"""
Seed script: replaces all headache entries with ten days of demo data.

- Clears every existing entry (and its medications) first.
- Dates are relative to today so the statistics page always has a
  current month to show.

Usage:
    python3 seed.py
"""

import json
import sqlite3
from datetime import date, datetime, timedelta, timezone

ENTRIES = [
    # (days ago, severity, notes, medications, triggers)
    (9, 3, "Woke up with a mild headache", ["ibuprofen"], ["lack-of-sleep", "stress"]),
    (7, 4, "Intense pressure on right side", ["paracetamol", "ibuprofen"], ["stress"]),
    (5, 2, "Slight discomfort in the afternoon", ["paracetamol"], ["hunger"]),
    (4, 5, "Severe migraine, had to rest in dark room", ["ibuprofen", "paracetamol"],
     ["lack-of-sleep", "stress"]),
    (3, 1, "Minor tension headache", [], ["too-much-sleep"]),
    (2, 3, "Moderate pain, improved with medication", ["ibuprofen"], ["hunger", "stress"]),
    (1, 4, "Strong headache after work", ["paracetamol"], ["stress", "lack-of-sleep"]),
    (0, 2, "Mild discomfort in the morning", ["ibuprofen"], ["too-much-sleep"]),
    (0, 3, "Moderate pain throughout the day", ["paracetamol"], ["hunger", "stress"]),
    (6, 5, "Severe headache with nausea", ["ibuprofen", "paracetamol"],
     ["lack-of-sleep", "stress", "hunger"]),
]


def seed_entries(conn, today: date = None) -> int:
    today = today or date.today()
    now_utc = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    conn.execute("DELETE FROM headache_medications")
    conn.execute("DELETE FROM headache_entries")
    for days_ago, severity, notes, medications, triggers in ENTRIES:
        cur = conn.execute(
            "INSERT INTO headache_entries (date, severity, notes, triggers, created_at, updated_at)"
            " VALUES (?, ?, ?, ?, ?, ?)",
            ((today - timedelta(days=days_ago)).isoformat(), severity, notes,
             json.dumps(triggers), now_utc, now_utc),
        )
        for position, name in enumerate(medications):
            conn.execute(
                "INSERT INTO headache_medications (entry_id, position, name) VALUES (?, ?, ?)",
                (cur.lastrowid, position, name),
            )
    conn.commit()
    return len(ENTRIES)


if __name__ == "__main__":
    from db import DB_PATH, init_db

    init_db()
    with sqlite3.connect(DB_PATH) as conn:
        count = seed_entries(conn)
    print(f"Seeded {count} headache entries into {DB_PATH}")
