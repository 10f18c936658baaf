"""Liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Awaitable, Callable, Dict, Tuple, Type

import asyncpg
from redis.exceptions import RedisError

from snapshoot.infra import postgres
from snapshoot.infra.redis import redis_client
from snapshoot.obs import metrics
from snapshoot.settings import settings

LOGGER = logging.getLogger(__name__)

_REDIS_ERRORS: Tuple[Type[BaseException], ...] = (RedisError, OSError, asyncio.TimeoutError)
_POSTGRES_ERRORS: Tuple[Type[BaseException], ...] = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


async def _probe(
	name: str,
	check: Callable[[], Awaitable[Any]],
	errors: Tuple[Type[BaseException], ...],
	mark: Callable[..., None],
	timeout: float,
) -> Dict[str, Any]:
	started = perf_counter()
	try:
		await asyncio.wait_for(check(), timeout=timeout)
	except errors as exc:
		mark(False)
		LOGGER.warning("readiness_probe_failed", extra={"dependency": name}, exc_info=True)
		return {"ok": False, "error": str(exc) or type(exc).__name__}
	elapsed = perf_counter() - started
	mark(True, latency_seconds=elapsed)
	return {"ok": True, "latency_ms": round(elapsed * 1000, 2)}


async def _select_one() -> None:
	pool = await postgres.get_pool()
	async with pool.acquire() as conn:
		await conn.execute("SELECT 1")


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	"""Redis is always probed; Postgres only when it backs the store."""
	checks = {"redis": await _probe("redis", redis_client.ping, _REDIS_ERRORS, metrics.mark_redis, 0.2)}
	if settings.store_backend == "postgres":
		checks["postgres"] = await _probe("postgres", _select_one, _POSTGRES_ERRORS, metrics.mark_postgres, 0.3)
	else:
		checks["postgres"] = {"ok": True, "backend": settings.store_backend}
	ok = all(state["ok"] for state in checks.values())
	return (200 if ok else 503), {"status": "ok" if ok else "degraded", "checks": checks}
