# ============================================================================
# apps/system/routes.py - System routes
# ============================================================================

from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from .schemas import StatusResponse, SystemHealth
from config import APP_NAME, APP_VERSION, ENABLED_APPS
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["system"])


@router.get("/", response_model=StatusResponse)
async def root():
    """API status endpoint"""
    return StatusResponse(
        success=True,
        message=f"{APP_NAME} is running",
        details={
            "version": APP_VERSION,
            "apps": ENABLED_APPS,
            "docs": "/docs",
            "redoc": "/redoc"
        }
    )


@router.get("/health", response_model=SystemHealth)
def health_check(request: Request):
    """Database connectivity and live queue state"""
    context = request.app.state.queue_context
    db = context.session_factory()
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {e}")
        db_status = f"error: {str(e)}"
    finally:
        db.close()

    return SystemHealth(
        status="healthy" if db_status == "connected" else "degraded",
        database_status=db_status,
        version=APP_VERSION,
        queue_classes=[qc.code for qc in context.settings.queue_classes],
        display_subscribers=len(context.broadcaster),
        pending_print_jobs=len(context.print_jobs)
    )
