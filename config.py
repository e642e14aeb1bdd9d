import os
from contextvars import ContextVar
from datetime import date, datetime, timedelta, timezone
from typing import Optional

DB_PATH = os.environ.get("HEADACHE_DB_PATH", "headaches.db")
CSRF_COOKIE_NAME = "csrf_token"
TZ_OFFSET_COOKIE = "tz_offset"

SEVERITY_MIN = 1
SEVERITY_MAX = 5

MEDICATIONS = [
    {"id": "ibuprofen", "name": "Ibuprofen"},
    {"id": "paracetamol", "name": "Paracetamol"},
    {"id": "aspirin", "name": "Aspirin"},
    {"id": "zolmitriptan", "name": "Zolmitriptan"},
]
MEDICATION_NAMES = {m["id"]: m["name"] for m in MEDICATIONS}

TRIGGERS = [
    {"id": "lack-of-sleep", "label": "Lack of sleep"},
    {"id": "too-much-sleep", "label": "Too much sleep"},
    {"id": "stress", "label": "Stress"},
    {"id": "hunger", "label": "Hunger"},
]

_client_now: ContextVar[Optional[datetime]] = ContextVar("_client_now", default=None)
_client_tz_offset_min: ContextVar[Optional[int]] = ContextVar("_client_tz_offset_min", default=None)

STORAGE_TS_FORMAT = "%Y-%m-%d %H:%M:%S"


def _set_client_clock(tz_offset_cookie: str):
    """Set per-request client-local clock derived from JS timezone offset cookie."""
    offset = None
    try:
        offset = int((tz_offset_cookie or "").strip())
    except ValueError:
        offset = None
    if offset is not None and -840 <= offset <= 840:
        _client_tz_offset_min.set(offset)
        _client_now.set(datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(minutes=offset))
        return
    _client_tz_offset_min.set(None)
    _client_now.set(datetime.now())


def _now_local() -> datetime:
    return _client_now.get() or datetime.now()


def _today_local() -> date:
    return _now_local().date()


def _to_utc_storage(dt_local: datetime) -> str:
    """Convert request-local naive datetime to UTC storage format."""
    offset = _client_tz_offset_min.get()
    if offset is not None:
        return (dt_local + timedelta(minutes=offset)).strftime(STORAGE_TS_FORMAT)
    # No cookie: interpret naive datetime in server local timezone.
    server_tz = datetime.now().astimezone().tzinfo
    dt_utc = dt_local.replace(tzinfo=server_tz).astimezone(timezone.utc).replace(tzinfo=None)
    return dt_utc.strftime(STORAGE_TS_FORMAT)


def _from_utc_storage(ts: str) -> datetime:
    """Convert UTC storage string to request-local naive datetime."""
    dt_utc = datetime.strptime(ts, STORAGE_TS_FORMAT)
    offset = _client_tz_offset_min.get()
    if offset is not None:
        return dt_utc - timedelta(minutes=offset)
    server_tz = datetime.now().astimezone().tzinfo
    return dt_utc.replace(tzinfo=timezone.utc).astimezone(server_tz).replace(tzinfo=None)
