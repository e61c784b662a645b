"""
==============================================================================
Health Endpoints
==============================================================================

Status endpoints for monitoring and container orchestration.

- GET /health        database status plus catalog summary
- GET /health/ready  503 until the database answers
- GET /health/live   process is up

The fallback category may be absent (it is created on first need and may
be deleted or renamed), so its presence is reported in the details only.

==============================================================================
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from productmanager.config import get_settings
from productmanager.db.database import get_db
from productmanager.db.store import CatalogStore


router = APIRouter(prefix="/health", tags=["Health"])

HEALTHY = "healthy"
DEGRADED = "degraded"
UNHEALTHY = "unhealthy"


class HealthController:
    """Collects component status for the health endpoints."""

    def __init__(self, db: Session):
        self._db = db
        self._store = CatalogStore(db)

    def database_status(self) -> str:
        try:
            self._db.execute(text("SELECT 1"))
        except Exception:
            return UNHEALTHY
        return HEALTHY

    def catalog_summary(self) -> dict:
        """Row counts and fallback category presence."""
        fallback_name = get_settings().fallback_category_name
        return {
            "products": self._store.count_products(),
            "categories": self._store.count_categories(),
            "fallback_category": fallback_name,
            "fallback_present": self._store.exists_category_by_name(fallback_name),
        }

    def report(self) -> dict:
        database = self.database_status()
        if database != HEALTHY:
            return {
                "status": DEGRADED,
                "components": {"api": HEALTHY, "database": database, "catalog": UNHEALTHY},
                "details": {}
            }

        return {
            "status": HEALTHY,
            "components": {"api": HEALTHY, "database": database, "catalog": HEALTHY},
            "details": self.catalog_summary()
        }


@router.get("")
async def health_check(db: Session = Depends(get_db)):
    """API, database and catalog status."""
    return HealthController(db).report()


@router.get("/ready")
async def readiness_check(db: Session = Depends(get_db)):
    """Ready once the database answers queries."""
    if HealthController(db).database_status() != HEALTHY:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ready": False}
        )
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness check for container orchestration."""
    return {"alive": True}
