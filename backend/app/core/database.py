from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Base class for all database models
# All models inherit from this to get SQLAlchemy ORM functionality
Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """
    Create the database engine for a connection string.

    SQLite needs check_same_thread disabled because FastAPI runs sync
    dependencies in a threadpool. An in-memory SQLite database is pinned to a
    single connection, otherwise every new connection would see an empty database.
    """
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(database_url, connect_args=connect_args)
    return create_engine(database_url, pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    # autocommit=False: Changes require explicit commit
    # autoflush=False: Don't auto-flush before queries
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    """
    Dependency for getting database session.

    Each request gets a new session from the factory the app was built with.
    The session is closed after the request completes (via finally block).
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        # Always close session, even if request raises an exception
        db.close()
