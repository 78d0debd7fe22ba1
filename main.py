# ============================================================================
# main.py - Application factory and entry point
# ============================================================================

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
import logging
from contextlib import asynccontextmanager
from typing import Optional

from config import (
    APP_NAME, APP_VERSION, APP_DESCRIPTION,
    CORS_ORIGINS, HOST, PORT, LOG_LEVEL
)
from shared.database import init_database
from shared.logging import setup_logging

# Import routers
from shared.auth.routes import router as auth_router
from apps.tickets.context import QueueContext
from apps.tickets.routes import router as tickets_router
from apps.operators.routes import router as operators_router
from apps.display import router as display_router
from apps.receipts import router as receipts_router
from apps.system.routes import router as system_router

logger = logging.getLogger(__name__)


def create_app(context: Optional[QueueContext] = None) -> FastAPI:
    """Build the API around a queue context (a default one from config if omitted)"""
    context = context or QueueContext.build()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize application on startup and cleanup on shutdown"""
        logger.info("🚀 Starting ticket queue service...")

        if init_database(context.engine):
            logger.info("✅ Database ready")
        else:
            logger.warning("⚠️ Database initialization had issues")

        logger.info(f"✅ Queue classes: {', '.join(qc.code for qc in context.settings.queue_classes)}")
        yield
        logger.info("Ticket queue service stopped")

    app = FastAPI(
        title=APP_NAME,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.queue_context = context
    app.state.session_factory = context.session_factory

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(system_router)
    app.include_router(auth_router)
    app.include_router(operators_router)
    app.include_router(tickets_router)
    app.include_router(display_router)
    app.include_router(receipts_router)
    logger.info("✅ Tickets, operators, display and receipts apps loaded")

    return app


def build_app() -> FastAPI:
    setup_logging()
    return create_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:build_app",
        factory=True,
        host=HOST,
        port=PORT,
        reload=True,
        log_level=LOG_LEVEL,
        reload_dirs=["."],  # Only watch the current directory
        reload_excludes=["venv/*"]  # Exclude the virtual environment
    )
