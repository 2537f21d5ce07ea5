import logging
from collections.abc import Callable

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.db import db_ping
from app.redis_client import redis_ping

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

READINESS_CHECKS: dict[str, Callable[[], bool]] = {
    "db": db_ping,
    "redis": redis_ping,
}

def _run_check(fn: Callable[[], bool]) -> tuple[bool, str | None]:
    try:
        return bool(fn()), None
    except Exception as e:
        msg = str(e).strip()
        return False, f"{e.__class__.__name__}: {msg}" if msg else e.__class__.__name__

@router.get("/health")
def health() -> dict:
    return {"status": "ok"}

@router.get("/ready")
def ready() -> JSONResponse:
    checks: dict[str, bool] = {}
    errors: dict[str, str] = {}
    for name, fn in READINESS_CHECKS.items():
        checks[name], err = _run_check(fn)
        if err:
            errors[name] = err

    ok = all(checks.values())
    if not ok:
        logger.warning(f"Readiness failed: {checks}")

    body: dict = {"status": "ok" if ok else "unready", "checks": checks}
    if errors:
        body["errors"] = errors
    return JSONResponse(status_code=200 if ok else 503, content=body)
