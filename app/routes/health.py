# app/routes/health.py
"""
Liveness and readiness endpoints.
"""

import time
from datetime import UTC, datetime

from fastapi import APIRouter

from app.config import settings
from app.db.pool import db_health_check
from app.models.api.contact_response import ApiInfoResponse

API_VERSION = "1.0.0"

router = APIRouter()


@router.get("/", response_model=ApiInfoResponse)
async def api_info():
    """Service banner: always 200 while the process is up."""
    return ApiInfoResponse(
        message="CRM Backend API is running!",
        version=API_VERSION,
        timestamp=datetime.now(UTC),
    )


@router.get("/healthz")
async def healthz():
    """Basic health check - always returns 200 if app is running."""
    return {"status": "ok", "service": "contact-crm"}


@router.get("/readyz")
async def readyz():
    """
    Readiness check including the database pool.
    """
    checks = {}
    overall_ok = True

    t0 = time.time()
    try:
        db_health = await db_health_check()
        is_healthy = db_health.get("healthy", False)

        checks["database"] = {
            "ok": is_healthy,
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }

        if "pool_stats" in db_health:
            pool_stats = db_health["pool_stats"]
            checks["database"].update(
                {
                    "pool_size": pool_stats.get("pool_size", 0),
                    "pool_available": pool_stats.get("pool_available", 0),
                    "pool_utilization_percent": pool_stats.get("pool_utilization_percent", 0),
                }
            )

        if "warnings" in db_health:
            checks["database"]["warnings"] = db_health["warnings"]

        if not is_healthy:
            checks["database"]["error"] = db_health.get("error", "Database unhealthy")

        overall_ok = overall_ok and is_healthy

    except Exception as e:
        checks["database"] = {
            "ok": False,
            "error": f"{type(e).__name__}: {e}",
            "latency_ms": round((time.time() - t0) * 1000, 1),
        }
        overall_ok = False

    checks["configuration"] = {
        "ok": bool(settings.DATABASE_URL),
        "issues": None if settings.DATABASE_URL else ["DATABASE_URL not set"],
        "environment": settings.environment,
    }
    overall_ok = overall_ok and bool(settings.DATABASE_URL)

    return {"overall_ok": overall_ok, "checks": checks, "timestamp": time.time()}
