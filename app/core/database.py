from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
import uuid
from .config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Bulk payroll operations use one session per worker thread
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_recycle": 300}


# Create database engine
engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_options(settings.database_url)
)

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class for models
Base = declarative_base()


# Dependency to get database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Dependency to get the factory bulk operations open worker sessions from
def get_session_factory():
    return SessionLocal


@contextmanager
def session_scope(session_factory=None):
    """Open a session for a unit of work that runs outside the request session."""
    db = (session_factory or SessionLocal)()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def generate_uuid():
    return uuid.uuid4()
