import os
from contextlib import contextmanager

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///feedme.db")

Base = declarative_base()
SessionLocal = sessionmaker(autocommit=False, autoflush=False)
engine = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(url: str, **kwargs):
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    eng = create_engine(url, **kwargs)
    if eng.dialect.name == "sqlite":
        event.listen(eng, "connect", _enable_sqlite_foreign_keys)
    return eng


def configure(url: str = None, **kwargs):
    """Point SessionLocal at a (new) database and return its engine."""
    global engine
    engine = make_engine(url or DATABASE_URL, **kwargs)
    SessionLocal.configure(bind=engine)
    return engine


def init_db():
    # models must be imported so their tables are registered on Base
    from . import models  # noqa: F401

    if engine is None:
        configure()
    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope():
    """Provide a session that is rolled back on error and always closed."""
    if engine is None:
        configure()
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
