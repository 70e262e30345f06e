import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from qc_api.core.config import settings
from qc_api.db.session import engine
from qc_api.db.models import Base

logger = logging.getLogger(__name__)


def _wait_for_database(bind: Engine, attempts: int) -> None:
    @retry(
        retry=retry_if_exception_type(OperationalError),
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.5, max=8),
        reraise=True,
    )
    def _ping():
        with bind.connect() as conn:
            conn.execute(text("SELECT 1"))

    _ping()


def init_db(bind: Engine | None = None) -> None:
    """Initialize database tables once the database accepts connections"""
    bind = bind or engine
    try:
        _wait_for_database(bind, settings.DB_CONNECT_ATTEMPTS)
        Base.metadata.create_all(bind)
        logger.info("Database tables initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize database: %s", e)
        raise

if __name__ == "__main__":
    from qc_api.core.logging import configure_logging

    configure_logging()
    init_db()
