import logging
from typing import Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from qc_api.core.config import settings

logger = logging.getLogger(__name__)


def build_engine(url: str) -> Engine:
    """
    Engine for `url`. In-memory SQLite shares one connection across threads
    so FastAPI's threadpool sees the same database.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=False, **kwargs)
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=1800,  # Recycle connections every 30 minutes
        echo=False,
    )


_db_url = settings.DATABASE_URL
logger.info("Using DATABASE_URL: %s...", _db_url[:30])

engine = build_engine(_db_url)

SessionLocal = sessionmaker(engine, expire_on_commit=False, class_=Session)


def ping_database(bind: Engine | None = None) -> bool:
    """
    Simple database connection test that returns True/False without raising exceptions.
    Useful for health checks where you want to test connectivity without failing the endpoint.
    """
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
            return True
    except Exception as e:
        logger.error("Database connection test failed: %s", e)
        return False


def get_db() -> Iterator[Session]:
    """
    Dependency that provides a database session per request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
