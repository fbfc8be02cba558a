"""
Database engine and session setup.

The engine is built from the configured DATABASE_URL when the app starts;
routes get a session per request through get_db().
"""
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Base class for SQLAlchemy models
Base = declarative_base()


def create_db_engine(database_url: str) -> Engine:
    """
    Create a database engine with connection pooling.

    SQLite URLs (used for local runs and tests) share one connection across
    threads; every other backend gets a regular pool.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url:
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)

    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=False,  # Set to True for SQL debugging
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    """
    Dependency function to get database session.
    Use this in FastAPI endpoints with Depends(get_db).

    Example:
        @router.get("/auth/me")
        def me(db: Session = Depends(get_db)):
            return db.query(Parent).all()
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
