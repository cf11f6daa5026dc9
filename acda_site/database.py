"""
Database engine and session for the ACDA site. SQLite by default.
"""
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from acda_site.config import DATABASE_URL
from acda_site.models import Base

logger = logging.getLogger(__name__)


def _make_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    # Sync handlers run in a thread pool, so SQLite connections cross threads
    sqlite_args = {"check_same_thread": False}
    if url.startswith("sqlite:///:memory:"):
        # One shared connection, otherwise every connection sees its own empty DB
        return create_engine(url, connect_args=sqlite_args, poolclass=StaticPool)
    return create_engine(url, connect_args=sqlite_args)


engine = _make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create all tables."""
    Base.metadata.create_all(bind=engine)


def ping_db() -> bool:
    """True when a trivial query succeeds; logs the failure otherwise."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("Database ping failed: %s", e)
        return False


def get_db():
    """Dependency: yield a DB session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
