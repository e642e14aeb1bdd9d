"""Shared headache-entry helpers used by both headaches.py and statistics.py.

Rows leave the database through these functions only, so every consumer
sees the same entry shape.
"""
import json
from datetime import date, datetime

from config import SEVERITY_MAX, SEVERITY_MIN, _from_utc_storage, _today_local


def _parse_entry_date(value) -> date:
    text = str(value or "").strip()
    if "T" in text:
        return datetime.strptime(text[:16], "%Y-%m-%dT%H:%M").date()
    return datetime.strptime(text, "%Y-%m-%d").date()


def _parse_severity(value):
    if isinstance(value, bool):
        raise ValueError("bool is not a severity")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("fractional severity")
        return int(value)
    return int(str(value).strip())


def _validate_entry_payload(date_value, severity_value):
    """Return ``(error, entry_date, severity)``; error is "" when valid."""
    if date_value in (None, "") or severity_value in (None, ""):
        return ("Date and severity are required", None, None)
    try:
        entry_date = _parse_entry_date(date_value)
    except ValueError:
        return ("Invalid date format", None, None)
    if entry_date > _today_local():
        return ("Date cannot be in the future", None, None)
    try:
        severity = _parse_severity(severity_value)
    except ValueError:
        return ("Severity must be a whole number", None, None)
    if not (SEVERITY_MIN <= severity <= SEVERITY_MAX):
        return (f"Severity must be between {SEVERITY_MIN} and {SEVERITY_MAX}", None, None)
    return ("", entry_date, severity)


def _normalize_medications(value) -> list[tuple[str, str]]:
    """Accept ``["ibuprofen"]`` or ``[{"name": "ibuprofen", "dosage": "400mg"}]``."""
    if not isinstance(value, list):
        return []
    meds = []
    for item in value:
        if isinstance(item, dict):
            name = str(item.get("name") or "").strip()
            dosage = str(item.get("dosage") or "").strip()
        elif isinstance(item, str):
            name, dosage = item.strip(), ""
        else:
            continue
        if name:
            meds.append((name, dosage))
    return meds


def _normalize_triggers(value) -> list[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return []
    tags = []
    for item in value:
        tag = str(item).strip() if item is not None else ""
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _decode_triggers(raw: str) -> list[str]:
    try:
        return _normalize_triggers(json.loads(raw or "[]"))
    except ValueError:
        return []


def _medications_by_entry(conn, entry_ids) -> dict[int, list]:
    meds: dict[int, list] = {eid: [] for eid in entry_ids}
    if not meds:
        return meds
    placeholders = ",".join("?" * len(meds))
    rows = conn.execute(
        f"SELECT entry_id, name, dosage FROM headache_medications"
        f" WHERE entry_id IN ({placeholders}) ORDER BY entry_id, position, id",
        list(meds),
    ).fetchall()
    for r in rows:
        meds[r["entry_id"]].append({"name": r["name"], "dosage": r["dosage"] or None})
    return meds


def _row_to_item(row, medications) -> dict:
    item = dict(row)
    item["triggers"] = _decode_triggers(item["triggers"])
    item["medications"] = medications
    for col in ("created_at", "updated_at"):
        if item.get(col):
            item[col] = _from_utc_storage(item[col]).strftime("%Y-%m-%d %H:%M:%S")
    return item


def _date_filter(from_date: str, to_date: str):
    clauses: list[str] = []
    params: list = []
    if from_date:
        clauses.append("date >= ?")
        params.append(from_date)
    if to_date:
        clauses.append("date <= ?")
        params.append(to_date)
    where = ("WHERE " + " AND ".join(clauses)) if clauses else ""
    return where, params


def _fetch_items(conn, from_date: str = "", to_date: str = "", newest_first: bool = True) -> list[dict]:
    where, params = _date_filter(from_date, to_date)
    order = "date DESC, id DESC" if newest_first else "date ASC, id ASC"
    rows = conn.execute(
        "SELECT id, date, severity, notes, triggers, created_at, updated_at"
        f" FROM headache_entries {where} ORDER BY {order}",
        params,
    ).fetchall()
    meds = _medications_by_entry(conn, [r["id"] for r in rows])
    return [_row_to_item(r, meds[r["id"]]) for r in rows]


def _fetch_item(conn, entry_id: int):
    row = conn.execute(
        "SELECT id, date, severity, notes, triggers, created_at, updated_at"
        " FROM headache_entries WHERE id = ?",
        (entry_id,),
    ).fetchone()
    if not row:
        return None
    return _row_to_item(row, _medications_by_entry(conn, [entry_id])[entry_id])


def _load_entries(conn, from_date: str = "", to_date: str = "") -> list[dict]:
    """Entries in the shape the statistics aggregator reads, oldest first."""
    entries = []
    for item in _fetch_items(conn, from_date, to_date, newest_first=False):
        entries.append({
            "id": item["id"],
            "date": item["date"],
            "severity": item["severity"],
            "notes": item["notes"],
            "triggers": item["triggers"],
            "medications": [m["name"] for m in item["medications"]],
        })
    return entries
