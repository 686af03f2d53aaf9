import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from taskhub.config import settings

LOGGER = logging.getLogger(__name__)


def _build_database_url() -> str:
    raw_url = settings.database_url
    if raw_url.startswith("postgresql://"):
        return raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return raw_url


DATABASE_URL = _build_database_url()
engine = create_engine(DATABASE_URL, pool_pre_ping=True) if DATABASE_URL else None
SessionLocal = sessionmaker(
    bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
)
Base = declarative_base()


def import_models() -> None:
    from taskhub.models import audit as _audit  # noqa: F401
    from taskhub.models import session as _session  # noqa: F401
    from taskhub.models import user as _user  # noqa: F401


def init_db() -> None:
    if engine is None:
        raise RuntimeError("DATABASE_URL is not configured")
    import_models()
    Base.metadata.create_all(bind=engine)
    LOGGER.info("Database schema ready")


@contextmanager
def session_scope():
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
