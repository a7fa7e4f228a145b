import logging
import time
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)

# SQLite requires check_same_thread=False for FastAPI (multi-threaded)
connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
)

# Enforce ON DELETE CASCADE on SQLite
if settings.DATABASE_URL.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Generator[Session, None, None]:
    """
    Commit everything done inside the block, or roll all of it back.

        with transaction(db):
            db.add(user)
            db.add(profile)
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("Transaction rolled back", exc_info=True)
        raise


def ping_database() -> bool:
    """Liveness check used by the health endpoint."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except OperationalError:
        logger.error("Database ping failed", exc_info=True)
        return False


def wait_for_database(
    retries: int = settings.DB_CONNECT_RETRIES,
    backoff: float = settings.DB_RETRY_BACKOFF_SECONDS,
) -> None:
    """Block until the database answers, retrying with exponential backoff."""
    for attempt in range(1, retries + 1):
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            logger.info("Database connection established")
            return
        except OperationalError as e:
            if attempt == retries:
                logger.error("Database unreachable after %d attempts", retries)
                raise
            delay = backoff * (2 ** (attempt - 1))
            logger.warning(
                "Database connection attempt %d/%d failed (%s), retrying in %.1fs",
                attempt, retries, e.__class__.__name__, delay,
            )
            time.sleep(delay)


def init_db() -> None:
    """Create all tables. Models must be imported before this runs."""
    from app.models import user, profile, equipment, location  # noqa: F401

    Base.metadata.create_all(bind=engine)
