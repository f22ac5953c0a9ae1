from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from agency.api.dependencies import get_session_maker
from agency.db.session import ping

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Returns a simple status response to verify the API is operational.
    Used by load balancers and monitoring systems to determine service health.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/health/db")
async def database_health_check(session_maker=Depends(get_session_maker)):
    """Readiness check that runs ``SELECT 1`` against the database.

    Returns 503 when the database cannot be reached.
    """
    try:
        await ping(session_maker)
    except SQLAlchemyError as exc:
        logger.error("health.database_unavailable", extra={"error_type": type(exc).__name__})
        return JSONResponse(status_code=503, content={"status": "unavailable", "database": "error"})
    return {"status": "ok", "database": "ok"}
