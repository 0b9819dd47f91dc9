# database.py
import importlib
from contextlib import contextmanager
from typing import Optional
import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker, configure_mappers
from sqlalchemy.pool import StaticPool

from config import settings
from errors import Internal, ServiceError

logger = logging.getLogger(__name__)

# Order matters: every module only references tables registered before it.
MODEL_MODULES = (
    "auth.models",
    "content.models",
    "friends.models",
    "messaging.models",
    "admin.models",
)


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # a single shared connection keeps in-memory databases alive across sessions
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {"pool_pre_ping": True, "connect_args": {"connect_timeout": 5}}


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def register_models() -> None:
    """Import all model modules and resolve their relationships."""
    for module_name in MODEL_MODULES:
        importlib.import_module(module_name)
    configure_mappers()


def init_db() -> None:
    register_models()
    Base.metadata.create_all(bind=engine)
    logger.info(f"Database schema ready ({len(Base.metadata.tables)} tables)")


def get_db():
    """Yield a database session for a single request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session, operation: str, actor_id: Optional[str] = None):
    """Commit the work done inside the block, or roll all of it back.

    Service errors are re-raised untouched; persistence errors are logged and
    surfaced as an opaque Internal error.
    """
    try:
        yield db
        db.commit()
    except ServiceError:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Transaction failed: operation={operation} actor={actor_id}", exc_info=True)
        raise Internal(f"Failed to {operation}")
