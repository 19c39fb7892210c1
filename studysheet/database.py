from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from studysheet.config import settings

Base = declarative_base()


def make_engine(url: str, **kwargs) -> Engine:
    """Create an engine, enabling foreign keys on SQLite"""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    db_engine = create_engine(url, echo=settings.log_level == "DEBUG", **kwargs)
    
    if url.startswith("sqlite"):
        @event.listens_for(db_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    
    return db_engine


engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db(bind: Engine = None) -> None:
    """Create all tables"""
    # Register models on Base.metadata
    import studysheet.models  # noqa: F401
    
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables initialized")


def reset_db(bind: Engine = None) -> None:
    """Drop and recreate all tables"""
    import studysheet.models  # noqa: F401
    
    target = bind or engine
    Base.metadata.drop_all(bind=target)
    Base.metadata.create_all(bind=target)
    logger.warning("Database reset, all data deleted")

