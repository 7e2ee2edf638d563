from contextlib import contextmanager

from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from sqlmodel import Session, SQLModel, create_engine

from .config import DATABASE_URL

# Registers every table on SQLModel.metadata before create_all runs.
from . import models  # noqa: F401


def _create_engine(url: str = DATABASE_URL):
    if url.startswith("sqlite"):
        # Sessions are used from the endpoint thread pool.
        return create_engine(url, connect_args={"check_same_thread": False})

    # Serverless Postgres: no pooling, ping before use.
    return create_engine(url, pool_pre_ping=True, poolclass=NullPool)


engine = _create_engine()

SessionLocal = sessionmaker(bind=engine, class_=Session, autoflush=False, expire_on_commit=True)


def get_db():
    """Request-scoped session for FastAPI ``Depends``."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def get_session():
    """Session for scripts and anything outside a request::

        with get_session() as session:
            ...
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def create_tables(bind=None) -> None:
    SQLModel.metadata.create_all(bind=bind or engine)
