import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from pelotas_arch.core.config import settings

logger = logging.getLogger(__name__)

_engine_kwargs: dict = {"pool_pre_ping": True, "echo": settings.SQL_ECHO}

# SQLite sessions may be handed across threads by FastAPI's threadpool
if settings.DATABASE_URL.startswith("sqlite"):
    _engine_kwargs["connect_args"] = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, **_engine_kwargs)
logger.info("Database engine configured")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
