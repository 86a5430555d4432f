from __future__ import annotations

import logging
from typing import Optional

import asyncpg

from src.brain import settings

logger = logging.getLogger(__name__)


class NeonDB:
    """Owns the asyncpg pool used by the read-only catalog."""

    def __init__(self, dsn: Optional[str] = None, *, schema: Optional[str] = None) -> None:
        self.dsn = dsn or settings.DATABASE_URL
        if not self.dsn:
            raise ValueError("DATABASE_URL missing")
        self.schema = schema or settings.CATALOG_SCHEMA
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        if self.pool:
            return
        self.pool = await asyncpg.create_pool(
            dsn=self.dsn,
            min_size=1,
            max_size=5,
            command_timeout=30,
        )
        logger.info("Neon pool connected (schema=%s)", self.schema)

    async def close(self) -> None:
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Neon pool closed")

    async def acquire_pool(self) -> asyncpg.Pool:
        if not self.pool:
            await self.connect()
        return self.pool
