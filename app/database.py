import asyncpg
from contextlib import asynccontextmanager
from app.config import settings
from app.core.exceptions import DatabaseError
import logging

logger = logging.getLogger(__name__)


class DatabasePool:
    """Process-wide asyncpg pool, opened lazily on first use or at startup"""
    _pool = None

    @classmethod
    async def create_pool(cls):
        if cls._pool is not None:
            return cls._pool

        try:
            cls._pool = await asyncpg.create_pool(
                **settings.db_connection_params,
                min_size=settings.db_pool_min_size,
                max_size=settings.db_pool_max_size,
                command_timeout=settings.db_command_timeout,
            )
        except (OSError, asyncpg.PostgresError) as e:
            logger.error(f"Could not open the campaigns database pool: {e}")
            raise

        logger.info(
            f"Campaigns database pool ready ({settings.db_pool_min_size}-{settings.db_pool_max_size} connections)"
        )
        return cls._pool

    @classmethod
    async def close_pool(cls):
        if cls._pool:
            await cls._pool.close()
            cls._pool = None
            logger.info("Campaigns database pool closed")


@asynccontextmanager
async def get_db_connection(use_transaction: bool = True):
    """
    Borrow a pooled connection.

    Membership changes pass the default use_transaction=True so the role check,
    the FOR UPDATE locks and the writes commit or roll back together. Listings
    pass False.

    Raises DatabaseError (500) when the pool cannot be opened.
    """
    try:
        pool = await DatabasePool.create_pool()
    except (OSError, asyncpg.PostgresError) as e:
        raise DatabaseError("Database unavailable") from e

    async with pool.acquire() as connection:
        if use_transaction:
            async with connection.transaction():
                yield connection
        else:
            yield connection
