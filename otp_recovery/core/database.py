from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import declarative_base, sessionmaker
from otp_recovery.config import settings
from otp_recovery.utils.logger import db_logger


def _engine_options(database_url: str) -> dict:
    """Pool settings for server databases; SQLite only needs thread sharing"""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,   # drop dead connections before use
        "pool_recycle": 300,
        "pool_size": 20,
        "max_overflow": 30,
        "pool_timeout": 30,
        "echo_pool": False,
    }


engine = create_engine(settings.database_url,
                       **_engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_database(bind=None):
    """Create any missing tables"""
    bind = bind or engine
    try:
        inspector = inspect(bind)
        existing_tables = inspector.get_table_names()

        # register every model on Base.metadata
        import otp_recovery.models.user  # noqa: F401
        import otp_recovery.models.verification  # noqa: F401

        expected_tables = list(Base.metadata.tables.keys())
        missing_tables = [
            table for table in expected_tables if table not in existing_tables]

        if missing_tables:
            db_logger.warning(f"Missing tables: {missing_tables}, creating")
            Base.metadata.create_all(bind=bind)
        return missing_tables

    except Exception as e:
        db_logger.error(f"Database initialization failed: {e}")
        raise


def get_db():
    """Yield a database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
