"""
Engines, session factories and the declarative base.

FastAPI endpoints use the async engine through get_db. The sync engine backs
scripts/create_admin.py and the test fixtures. Both read DATABASE_URL from the
environment (or .env); the async URL is derived from it by driver prefix.
"""

import os
from typing import Any, AsyncGenerator, Dict

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _resolve_database_url() -> str:
    url = os.getenv("DATABASE_URL", "")
    if url:
        return url
    if os.getenv("ENV", "development").lower() == "production":
        raise RuntimeError("DATABASE_URL is not set or is empty.")
    return "postgresql://localhost:5432/testlink_dev"


DATABASE_URL = _resolve_database_url()

# SQL echo follows the application DEBUG flag
ECHO_SQL = _env_flag("DEBUG", "False")

# Sync driver prefix -> async driver prefix. Plain string replacement keeps
# hostnames exactly as configured.
ASYNC_DRIVER_PREFIXES = {
    "postgresql+psycopg2://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def to_async_url(url: str) -> str:
    """
    Map a sync DATABASE_URL onto its async driver.

    Raises:
        ValueError: If the URL prefix has no async driver mapping
    """
    for sync_prefix, async_prefix in ASYNC_DRIVER_PREFIXES.items():
        if url.startswith(sync_prefix):
            return async_prefix + url[len(sync_prefix) :]
    raise ValueError(
        f"No async driver for DATABASE_URL; expected one of "
        f"{', '.join(ASYNC_DRIVER_PREFIXES)}"
    )


def pool_options(url: str) -> Dict[str, Any]:
    """Connection pool keyword arguments. SQLite keeps its default pool."""
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": int(os.getenv("DB_POOL_SIZE", "10")),
        "max_overflow": int(os.getenv("DB_POOL_MAX_OVERFLOW", "20")),
        "pool_timeout": int(os.getenv("DB_POOL_TIMEOUT", "30")),
        "pool_recycle": int(os.getenv("DB_POOL_RECYCLE", "3600")),
        "pool_pre_ping": _env_flag("DB_POOL_PRE_PING", "True"),
    }


engine = create_engine(DATABASE_URL, echo=ECHO_SQL, **pool_options(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_async_url = to_async_url(DATABASE_URL)
async_engine = create_async_engine(_async_url, echo=ECHO_SQL, **pool_options(_async_url))
AsyncSessionLocal = async_sessionmaker(
    async_engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    """Declarative base shared by the models in app.models.models."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped async session. Rolls back if the handler raises.
    """
    async with AsyncSessionLocal() as db:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise
