"""
Database connection and pool management
"""

import asyncpg
import logging
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from config.settings import to_async_driver_url

logger = logging.getLogger(__name__)


async def create_db_pool(
    database_url: str,
    min_size: int = 1,
    max_size: int = 10,
    command_timeout: float = 60,
) -> asyncpg.Pool:
    """Create an asyncpg pool and check that the database answers"""
    db_pool = await asyncpg.create_pool(
        database_url,
        min_size=min_size,
        max_size=max_size,
        command_timeout=command_timeout,
        statement_cache_size=0  # Fix for pgbouncer compatibility
    )

    # Test connection
    async with db_pool.acquire() as conn:
        await conn.fetchval("SELECT 1")

    logger.info("Database pool initialized successfully")
    return db_pool


async def close_db_pool(db_pool: asyncpg.Pool) -> None:
    if db_pool:
        await db_pool.close()
    logger.info("Database connections closed")


def create_db_engine(
    database_url: str,
    pool_size: int = 10,
    command_timeout: float = 60,
    echo: bool = False,
) -> AsyncEngine:
    """Create a SQLAlchemy async engine on the asyncpg dialect"""
    return create_async_engine(
        to_async_driver_url(database_url),
        pool_size=pool_size,
        pool_pre_ping=True,
        echo=echo,
        connect_args={
            "command_timeout": command_timeout,
            "statement_cache_size": 0,
        },
    )
