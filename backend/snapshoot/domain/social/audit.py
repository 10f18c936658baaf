"""Audit helpers for friend edges and group membership."""

from __future__ import annotations

import logging
from typing import Dict

from redis.exceptions import RedisError

from snapshoot.infra.redis import redis_client
from snapshoot.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

FRIEND_STREAM = "x:friendships.events"
GROUP_STREAM = "x:groups.events"


async def _append(stream: str, event: str, fields: Dict[str, str]) -> None:
	payload = {"event": event, **fields}
	try:
		await redis_client.xadd(stream, payload)
	except (RedisError, OSError):
		obs_metrics.inc_audit_failure(stream)
		logger.warning("audit_append_failed", extra={"stream": stream, "event": event}, exc_info=True)


async def log_friend_event(event: str, fields: Dict[str, str]) -> None:
	await _append(FRIEND_STREAM, event, fields)


async def log_group_event(event: str, fields: Dict[str, str]) -> None:
	await _append(GROUP_STREAM, event, fields)
