"""AsyncPG pool management for the backend."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg

from snapshoot.domain.errors import AlreadyExists, StorageFailure
from snapshoot.settings import settings

_pool: Optional[asyncpg.pool.Pool] = None


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	if _pool is None:
		_pool = await asyncpg.create_pool(
			dsn=settings.postgres_url,
			min_size=settings.postgres_min_pool_size,
			max_size=settings.postgres_max_pool_size,
		)
	return _pool


def set_pool(pool: Optional[asyncpg.pool.Pool]) -> None:
	global _pool
	_pool = pool


async def get_pool() -> asyncpg.pool.Pool:
	if _pool is None:
		return await init_pool()
	return _pool


async def close_pool() -> None:
	global _pool
	if _pool is not None:
		await _pool.close()
		_pool = None


@asynccontextmanager
async def storage_errors(reason: str = "storage_failure") -> AsyncIterator[None]:
	"""Translate driver failures into the domain error taxonomy."""
	try:
		yield
	except asyncpg.UniqueViolationError as exc:
		raise AlreadyExists("already_exists", "Record already exists") from exc
	except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
		raise StorageFailure(reason, "Database operation failed") from exc
