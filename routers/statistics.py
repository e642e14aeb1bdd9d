from fastapi import APIRouter
from fastapi.responses import JSONResponse

from analysis import compute_statistics, most_common_severity, top_medication
from config import MEDICATION_NAMES
from db import get_db
from routers.headaches_utils import _load_entries

router = APIRouter()


@router.get("/api/statistics")
def api_statistics(from_date: str = "", to_date: str = "", top: int = 0):
    with get_db() as conn:
        entries = _load_entries(conn, from_date, to_date)
    stats = compute_statistics(entries, MEDICATION_NAMES)
    for month in stats["monthlyFrequency"]:
        month["averageSeverity"] = round(month["averageSeverity"], 1)
    if top > 0:
        stats["medicationStats"] = stats["medicationStats"][:top]
    stats["mostCommonSeverity"] = most_common_severity(stats["severityDistribution"])
    stats["topMedication"] = top_medication(stats)
    return JSONResponse(stats)
