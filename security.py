import hmac
import logging
import secrets

from fastapi import Request

from config import CSRF_COOKIE_NAME

logger = logging.getLogger(__name__)


def _request_origin_host(request: Request) -> str:
    header = request.headers.get("origin") or request.headers.get("referer") or ""
    if "://" not in header:
        return ""
    return header.split("://", 1)[1].split("/", 1)[0].lower()


def _is_same_origin(request: Request) -> bool:
    origin_host = _request_origin_host(request)
    if not origin_host:
        return False
    return origin_host == request.url.netloc.lower()


def _ensure_csrf_cookie(request: Request, response):
    if request.cookies.get(CSRF_COOKIE_NAME):
        return response
    response.set_cookie(
        CSRF_COOKIE_NAME,
        secrets.token_urlsafe(32),
        httponly=False,
        samesite="lax",
        secure=request.url.scheme == "https",
    )
    return response


def _csrf_header_valid(request: Request) -> bool:
    cookie_token = request.cookies.get(CSRF_COOKIE_NAME, "")
    header_token = request.headers.get("x-csrf-token", "")
    return bool(cookie_token) and hmac.compare_digest(cookie_token.encode(), header_token.encode())


def _write_allowed(request: Request) -> bool:
    """Same-origin and double-submit CSRF check for mutating API calls."""
    if not _is_same_origin(request):
        logger.warning(
            "Rejected cross-origin %s %s (origin=%r)",
            request.method, request.url.path, _request_origin_host(request),
        )
        return False
    if not _csrf_header_valid(request):
        logger.warning("Rejected %s %s: missing or bad CSRF token", request.method, request.url.path)
        return False
    return True
