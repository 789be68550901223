"""
Health check and status endpoints.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import settings
from app.core.datetime_utils import utc_now
from app.models import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.

    Reports the service identity and whether the database answers a trivial
    query. Returns 503 when the database is unreachable.
    """
    database = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database query failed: {e}")
        database = "unavailable"

    body = {
        "status": "healthy" if database == "ok" else "degraded",
        "timestamp": utc_now().isoformat(),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": database,
    }
    return JSONResponse(status_code=200 if database == "ok" else 503, content=body)


@router.get("/ping")
async def ping():
    """
    Simple ping endpoint for basic connectivity testing.
    """
    return {"message": "pong"}
