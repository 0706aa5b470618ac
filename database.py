import os
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

Base = declarative_base()

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set in the environment")

# ─── Connection-pool tuning ────────────────────────────────────────
# Defaults suit a small hosted Postgres. Override via env vars.
POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))           # steady-state connections
MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))     # burst above pool_size
POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))     # seconds to wait for a conn
POOL_RECYCLE = int(os.getenv("DB_POOL_RECYCLE", "1800"))   # recycle every 30 min

IS_SQLITE = DATABASE_URL.startswith("sqlite")

if IS_SQLITE:
    # Local dev and tests. In-memory databases must share one connection.
    sqlite_kwargs = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in DATABASE_URL or DATABASE_URL in ("sqlite://", "sqlite:///"):
        sqlite_kwargs["poolclass"] = StaticPool
    engine = create_engine(DATABASE_URL, **sqlite_kwargs)

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    logger.info("DB configured: sqlite")
else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=POOL_SIZE,
        max_overflow=MAX_OVERFLOW,
        pool_timeout=POOL_TIMEOUT,
        pool_recycle=POOL_RECYCLE,
        pool_pre_ping=True,  # test connection liveness before checkout
    )
    logger.info(
        "DB pool configured: size=%d, max_overflow=%d, recycle=%ds, pre_ping=True",
        POOL_SIZE, MAX_OVERFLOW, POOL_RECYCLE,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
