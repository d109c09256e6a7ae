import logging
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI
from sqlalchemy import text
from alembic.config import Config
from alembic import command
from app.core.config import settings
from app.core.logging import configure_logging
from app.api.errors import install_error_handlers
from app.api.routes import router as api_router
from app.db.session import engine

configure_logging(settings.log_level)
log = logging.getLogger(__name__)


def wait_for_database(max_retries: int = 30, retry_delay: float = 1.0) -> None:
    """Wait for the database to be available."""
    for attempt in range(max_retries):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            log.info("Database connection successful")
            return
        except Exception as e:
            if attempt < max_retries - 1:
                log.warning("Database not ready, retrying in %s seconds (attempt %d/%d): %s",
                            retry_delay, attempt + 1, max_retries, e)
                time.sleep(retry_delay)
            else:
                log.error("Database connection failed after %d attempts", max_retries)
                raise


def run_migrations() -> None:
    """Run Alembic migrations to head."""
    try:
        log.info("Running database migrations...")
        alembic_cfg = Config("alembic.ini")
        command.upgrade(alembic_cfg, "head")
        log.info("Database migrations completed successfully")
    except Exception as e:
        log.error("Database migration failed: %s", e, exc_info=True)
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    log.info("Starting API server...")
    try:
        wait_for_database()
        run_migrations()
        log.info("API server startup complete")
    except Exception as e:
        log.error("API startup failed: %s", e, exc_info=True)
        raise
    yield
    log.info("Shutting down API server...")


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    lifespan=lifespan
)
install_error_handlers(app)
app.include_router(api_router, prefix="/v1")
