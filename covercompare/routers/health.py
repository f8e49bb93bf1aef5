"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from datetime import datetime, timezone
import logging

from covercompare.config import settings
from covercompare.database import get_db
from covercompare.models.schemas import HealthCheckResponse
from covercompare.services.comparison_extractor import ComparisonExtractionService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint to verify system status.

    Returns:
        HealthCheckResponse with status of database and Ollama
    """
    # Check database connection
    db_status = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "error"

    # Check Ollama connection (extraction only; editing works without it)
    ollama_status = "ok"
    if not await ComparisonExtractionService().check_health():
        ollama_status = "error"

    # Overall status
    overall_status = "healthy" if db_status == "ok" and ollama_status == "ok" else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        database=db_status,
        ollama=ollama_status,
        data_source=settings.DATA_SOURCE,
        timestamp=datetime.now(timezone.utc),
    )
