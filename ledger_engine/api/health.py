"""
Health check endpoint.

Used by load balancers, monitoring systems, and humans
to verify the application is running and responsive.
It is the one route that never requires a token.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_engine.database import get_db
from ledger_engine.logging_config import get_logger

router = APIRouter(tags=["Health"])

logger = get_logger("api.health")


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Return application health status including database connectivity.

    A failed SELECT 1 reports the database as unhealthy and the
    service as degraded, but still answers 200 so the caller can
    read the body.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError:
        logger.warning("health_check_database_unreachable", exc_info=True)
        db_status = "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "service": "ledger-engine",
        "database": db_status,
    }
