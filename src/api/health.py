"""Health, readiness, version and metrics endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.api.interceptors import metrics
from src.config import get_settings
from src.database import get_db

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}


@router.get("/ready")
def readiness_check(db: Annotated[Session, Depends(get_db)]):
    """Readiness check: the database must answer."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not ready"},
        )
    return {"status": "ready"}


@router.get("/version")
async def version_info():
    """Build information."""
    return {
        "version": settings.version,
        "build_time": settings.build_time,
        "git_commit": settings.git_commit,
    }


@router.get("/metrics", response_class=PlainTextResponse)
async def metrics_endpoint():
    """RPC counters in Prometheus text format."""
    return PlainTextResponse(metrics.render(), media_type="text/plain; version=0.0.4")
