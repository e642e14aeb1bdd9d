import json
import logging

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from config import MEDICATIONS, TRIGGERS, _now_local, _to_utc_storage
from db import get_db
from routers.headaches_utils import (
    _fetch_item,
    _fetch_items,
    _normalize_medications,
    _normalize_triggers,
    _validate_entry_payload,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _insert_medications(conn, entry_id: int, medications):
    for position, (name, dosage) in enumerate(medications):
        conn.execute(
            "INSERT INTO headache_medications (entry_id, position, name, dosage) VALUES (?, ?, ?, ?)",
            (entry_id, position, name, dosage),
        )


def _not_found():
    return JSONResponse({"ok": False, "error": "Headache entry not found"}, status_code=404)


@router.get("/api/headaches/options")
def api_headache_options():
    return JSONResponse({"medications": MEDICATIONS, "triggers": TRIGGERS})


@router.get("/api/headaches")
def api_headaches(from_date: str = "", to_date: str = ""):
    with get_db() as conn:
        items = _fetch_items(conn, from_date, to_date)
    return JSONResponse({"headaches": items})


@router.post("/api/headaches")
def api_headaches_create(payload: dict = Body(...)):
    error, entry_date, severity = _validate_entry_payload(payload.get("date"), payload.get("severity"))
    if error:
        return JSONResponse({"ok": False, "error": error}, status_code=400)
    notes = str(payload.get("notes") or "").strip()
    triggers = _normalize_triggers(payload.get("triggers"))
    medications = _normalize_medications(payload.get("medications"))
    now_utc = _to_utc_storage(_now_local())
    with get_db() as conn:
        cur = conn.execute(
            "INSERT INTO headache_entries (date, severity, notes, triggers, created_at, updated_at)"
            " VALUES (?, ?, ?, ?, ?, ?)",
            (entry_date.isoformat(), severity, notes, json.dumps(triggers), now_utc, now_utc),
        )
        _insert_medications(conn, cur.lastrowid, medications)
        conn.commit()
        item = _fetch_item(conn, cur.lastrowid)
    logger.info("Created headache entry %s for %s", item["id"], item["date"])
    return JSONResponse({"ok": True, "headache": item}, status_code=201)


@router.get("/api/headaches/{entry_id}")
def api_headache_get(entry_id: int):
    with get_db() as conn:
        item = _fetch_item(conn, entry_id)
    if not item:
        return _not_found()
    return JSONResponse({"headache": item})


@router.put("/api/headaches/{entry_id}")
def api_headache_update(entry_id: int, payload: dict = Body(...)):
    with get_db() as conn:
        existing = _fetch_item(conn, entry_id)
        if not existing:
            return _not_found()
        error, entry_date, severity = _validate_entry_payload(
            payload.get("date", existing["date"]),
            payload.get("severity", existing["severity"]),
        )
        if error:
            return JSONResponse({"ok": False, "error": error}, status_code=400)
        notes = str(payload.get("notes") or "").strip() if "notes" in payload else existing["notes"]
        if "triggers" in payload:
            triggers = _normalize_triggers(payload.get("triggers"))
        else:
            triggers = existing["triggers"]
        conn.execute(
            "UPDATE headache_entries SET date = ?, severity = ?, notes = ?, triggers = ?, updated_at = ?"
            " WHERE id = ?",
            (
                entry_date.isoformat(), severity, notes, json.dumps(triggers),
                _to_utc_storage(_now_local()), entry_id,
            ),
        )
        if "medications" in payload:
            conn.execute("DELETE FROM headache_medications WHERE entry_id = ?", (entry_id,))
            _insert_medications(conn, entry_id, _normalize_medications(payload.get("medications")))
        conn.commit()
        item = _fetch_item(conn, entry_id)
    logger.info("Updated headache entry %s", entry_id)
    return JSONResponse({"ok": True, "headache": item})


@router.delete("/api/headaches/{entry_id}")
def api_headache_delete(entry_id: int):
    with get_db() as conn:
        row = conn.execute("SELECT id FROM headache_entries WHERE id = ?", (entry_id,)).fetchone()
        if not row:
            return _not_found()
        conn.execute("DELETE FROM headache_medications WHERE entry_id = ?", (entry_id,))
        conn.execute("DELETE FROM headache_entries WHERE id = ?", (entry_id,))
        conn.commit()
    logger.info("Deleted headache entry %s", entry_id)
    return JSONResponse({"ok": True})
