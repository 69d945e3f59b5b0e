"""
Database configuration and base model.

Uses SQLAlchemy 2.0 declarative style with SQLite.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import PATHS


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def create_db_engine(url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create the database engine.

    Args:
        url: SQLAlchemy URL; defaults to the SQLite file in the data directory.
             "sqlite://" gives a private in-memory database.
        echo: Log emitted SQL
    """
    if url is None:
        PATHS.data_dir.mkdir(parents=True, exist_ok=True)
        url = PATHS.database_url

    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every session sees an empty database
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        url,
        echo=echo,
        connect_args={"check_same_thread": False},
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine."""
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """Context manager for database sessions."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """Initialize the database, creating all tables."""
    # Register every table on Base.metadata
    import models.player  # noqa: F401
    import models.match  # noqa: F401
    import models.settings  # noqa: F401

    Base.metadata.create_all(bind=engine)


def reset_db(engine: Engine) -> None:
    """Drop and recreate all tables. USE WITH CAUTION."""
    Base.metadata.drop_all(bind=engine)
    init_db(engine)
