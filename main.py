import logging
import sqlite3
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import TZ_OFFSET_COOKIE, _set_client_clock
from db import init_db, ping
from routers.headaches import router as headaches_router
from routers.statistics import router as statistics_router
from security import _ensure_csrf_cookie, _write_allowed

logger = logging.getLogger(__name__)

init_db()

app = FastAPI()
app.include_router(headaches_router)
app.include_router(statistics_router)


@app.middleware("http")
async def request_middleware(request: Request, call_next):
    _set_client_clock(request.cookies.get(TZ_OFFSET_COOKIE, ""))
    if request.method in {"POST", "PUT", "PATCH", "DELETE"} and request.url.path.startswith("/api/"):
        if not _write_allowed(request):
            return JSONResponse({"error": "forbidden"}, status_code=403)
    return _ensure_csrf_cookie(request, await call_next(request))


@app.exception_handler(sqlite3.Error)
async def database_error_handler(request: Request, exc: sqlite3.Error):
    logger.exception("Database error during %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"ok": False, "error": "Database error"}, status_code=500)


@app.get("/api/health")
def api_health():
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        ping()
    except sqlite3.Error as exc:
        logger.error("Health check: database connection error: %s", exc)
        return JSONResponse(
            {"status": "error", "database": "disconnected", "error": str(exc), "timestamp": timestamp},
            status_code=500,
        )
    logger.info("Health check: database connection successful")
    return JSONResponse({"status": "ok", "database": "connected", "timestamp": timestamp})
