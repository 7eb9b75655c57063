import logging
from fastapi import APIRouter
from sqlalchemy import text

from pharmapos.database import engine
from pharmapos.utils.cache import redis_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/",
    summary="Health check",
    description="Liveness probe; does not touch any dependency."
)
def health_check():
    return {"status": "healthy"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check the database and the Redis product cache."
)
def readiness_check():
    """
    Readiness check for all dependencies.

    The database is required; Redis only backs the product cache, so the
    service stays ready (degraded) without it.
    """
    checks = {
        "database": False,
        "cache": False
    }

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            checks["database"] = True
    except Exception as e:
        logger.error(f"Database readiness check failed: {e}")
        checks["database_error"] = str(e)

    try:
        redis_client.ping()
        checks["cache"] = True
    except Exception as e:
        logger.warning(f"Cache readiness check failed: {e}")
        checks["cache_error"] = str(e)

    if not checks["database"]:
        status = "not_ready"
    elif not checks["cache"]:
        status = "degraded"
    else:
        status = "ready"

    return {"status": status, "checks": checks}
