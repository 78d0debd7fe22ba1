# ============================================================================
# shared/database.py - Engine, session factory and schema bootstrap
# ============================================================================

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Optional
from fastapi import Request
import os
import logging

logger = logging.getLogger(__name__)

# Import from config
try:
    from config import DATABASE_URL, DATABASE_ECHO
except ImportError:
    # Fallback if config is not available
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./ticket_queue.db")
    DATABASE_ECHO = os.getenv("DATABASE_ECHO", "false").lower() == "true"


def _enable_immediate_transactions(engine: Engine) -> None:
    """Start every SQLite transaction with BEGIN IMMEDIATE (one writer at a time)"""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_db_engine(url: str = DATABASE_URL, echo: bool = DATABASE_ECHO) -> Engine:
    """Create an engine configured for the database type in ``url``"""
    if url.startswith("sqlite"):
        if url in ("sqlite://", "sqlite:///:memory:"):
            # In-memory databases only exist on a single shared connection
            engine = create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool
            )
        else:
            engine = create_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False, "timeout": 30}
            )
        _enable_immediate_transactions(engine)
    elif url.startswith("mysql"):
        engine = create_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            pool_recycle=300,
            pool_size=10,
            max_overflow=5
        )
    elif url.startswith("postgresql"):
        engine = create_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=5
        )
    else:
        # Default configuration
        engine = create_engine(url, echo=echo)
    return engine


def create_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


engine = create_db_engine()

# Create session factory
SessionLocal = create_session_factory(engine)

# Create base class
Base = declarative_base()


# Dependency to get database session
def get_db(request: Request) -> Session:
    """Get database session from the application's session factory"""
    factory = getattr(request.app.state, "session_factory", None) or SessionLocal
    db = factory()
    try:
        yield db
    finally:
        db.close()


def import_models():
    """Import all models to ensure they are included in Base.metadata"""
    try:
        from apps.tickets.models import Ticket  # noqa: F401
        from apps.operators.models import Operator  # noqa: F401
        logger.info("✅ Ticket and operator models imported successfully")
    except ImportError as e:
        logger.warning(f"⚠️ Could not import models: {e}")


# Initialize database
def init_database(bind: Optional[Engine] = None) -> bool:
    """Initialize the database and create tables"""
    bind = bind or engine
    try:
        # Import models here to ensure they are registered with Base
        import_models()

        # Test connection first
        with bind.connect():
            logger.info("✅ Database connection successful")

        # Create all tables
        Base.metadata.create_all(bind=bind)
        logger.info("✅ Database tables created/verified")
        return True

    except Exception as e:
        logger.error(f"❌ Database initialization error: {str(e)}")
        return False
