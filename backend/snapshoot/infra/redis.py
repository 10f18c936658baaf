"""Redis connection management.

Provides a stable proxy object so ``from snapshoot.infra.redis import redis_client``
always references the same instance. The underlying client can be swapped at
runtime (fakeredis in tests) without breaking previously imported references.
"""

from __future__ import annotations

import redis.asyncio as redis

from snapshoot.settings import settings


class RedisProxy:
	"""Forward attribute access to an underlying Redis client."""

	def __init__(self, client: redis.Redis):
		self._client: redis.Redis = client

	def set_client(self, client: redis.Redis) -> None:
		self._client = client

	async def xadd(self, name, fields, *, maxlen: int | None = 10_000, approximate: bool = True):
		"""Append to a stream with a bounded length unless told otherwise."""
		return await self._client.xadd(name, fields, maxlen=maxlen, approximate=approximate)

	def __getattr__(self, item):
		return getattr(self._client, item)


_real_client = redis.from_url(settings.redis_url, decode_responses=True)
redis_client: RedisProxy = RedisProxy(_real_client)


def set_redis_client(client: redis.Redis) -> None:
	redis_client.set_client(client)
