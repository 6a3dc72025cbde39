# marketplace/data/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from marketplace.utils.settings import DATABASE_URL, SQL_ECHO

Base = declarative_base()


def build_engine(url: str = DATABASE_URL):
    kwargs = {"echo": SQL_ECHO, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
    engine = create_engine(url, **kwargs)

    if engine.dialect.name == "sqlite":
        #sqlite does not enforce FKs (cascade/restrict) unless asked per connection
        @event.listens_for(engine, "connect")
        def _enable_sqlite_fks(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    # models must be imported before create_all so they land in Base.metadata
    import marketplace.data.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    """One session (unit of work) per request, never shared between requests."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
