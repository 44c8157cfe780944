# File: reframe/core/database/connection.py

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy_utils import database_exists, create_database

from reframe.core.config.settings import settings
from reframe.core.database.base import Base


def make_engine(url: str):
    # check_same_thread=False is needed only for SQLite: exports run on worker threads
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, pool_pre_ping=True, connect_args=connect_args)


engine = make_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Creates the database (if missing) and every journal table."""
    bind = bind if bind is not None else engine

    # Import models so they register on Base.metadata
    import reframe.core.jobs.data.sql_models  # noqa: F401

    if not database_exists(bind.url):
        create_database(bind.url)
    Base.metadata.create_all(bind=bind)
