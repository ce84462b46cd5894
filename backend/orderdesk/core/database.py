from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from orderdesk.core.config import settings


def make_engine(dsn: str, **options: Any) -> Engine:
    """Create an engine, letting SQLite connections cross threads."""
    if dsn.startswith("sqlite"):
        options.setdefault("connect_args", {"check_same_thread": False})
    else:
        options.setdefault("pool_pre_ping", True)
    return create_engine(dsn, **options)


engine = make_engine(settings.APP_DATABASE_DSN)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session, closed once the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create any missing tables on the current engine."""
    import orderdesk.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
