from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from app.core.config import settings

Base = declarative_base()


def make_session_factory(dsn: str) -> sessionmaker:
    """
    Session factory for a database URL. Records are read back after commit
    (insert returns the stored row), so sessions do not expire on commit.
    An in-memory SQLite database keeps a single shared connection.
    """
    options = {"future": True, "pool_pre_ping": True}
    if dsn.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if dsn in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool

    engine = create_engine(dsn, **options)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


engine = None
SessionLocal = None

if settings.POSTGRES_DSN:
    SessionLocal = make_session_factory(settings.POSTGRES_DSN)
    engine = SessionLocal.kw["bind"]
