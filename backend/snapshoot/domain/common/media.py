"""Media attachments shared by messages and stories."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field
from redis.exceptions import RedisError

from snapshoot.domain.errors import StorageFailure
from snapshoot.infra import media as media_store
from snapshoot.infra.redis import redis_client
from snapshoot.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

ORPHAN_STREAM = "x:media.orphans"


class MediaType(str, Enum):
	IMAGE = media_store.MEDIA_IMAGE
	VIDEO = media_store.MEDIA_VIDEO


@dataclass(slots=True)
class Media:
	type: MediaType
	url: str
	duration: Optional[float] = None

	@classmethod
	def from_record(cls, record: Optional[Mapping[str, Any]]) -> Optional["Media"]:
		if not record or not record.get("media_url"):
			return None
		duration = record.get("media_duration")
		return cls(
			type=MediaType(record["media_type"]),
			url=str(record["media_url"]),
			duration=float(duration) if duration is not None else None,
		)


class MediaOut(BaseModel):
	type: MediaType
	url: str
	duration: Optional[float] = None

	@classmethod
	def from_media(cls, media: Optional[Media]) -> Optional["MediaOut"]:
		if media is None:
			return None
		return cls(type=media.type, url=media.url, duration=media.duration)


class MediaIn(BaseModel):
	"""Reference to an object that is already in the media store."""

	type: MediaType
	url: str = Field(..., min_length=1, max_length=2048)
	duration: Optional[float] = Field(default=None, ge=0)

	def to_media(self) -> Media:
		duration = self.duration if self.type is MediaType.VIDEO else None
		return Media(type=self.type, url=self.url, duration=duration)


@dataclass(slots=True)
class MediaUpload:
	data: bytes
	content_type: str
	duration: Optional[float] = None


async def store_upload(upload: MediaUpload) -> Media:
	"""Validate and store an uploaded payload, returning the attachment."""
	stored = await media_store.get_media_store().put(upload.data, upload.content_type)
	kind = MediaType(stored.kind)
	return Media(type=kind, url=stored.url, duration=upload.duration if kind is MediaType.VIDEO else None)


async def release(media: Optional[Media], *, owner: str) -> None:
	"""Release a stored object after its record is gone.

	A failed release is recorded on the orphan stream for reconciliation and
	re-raised so the caller sees the storage failure.
	"""
	if media is None:
		return
	try:
		await media_store.get_media_store().delete(media.url)
	except StorageFailure:
		obs_metrics.inc_media_orphan()
		logger.error("media_release_failed", extra={"owner": owner, "media_url": media.url})
		try:
			await redis_client.xadd(ORPHAN_STREAM, {"url": media.url, "owner": owner})
		except RedisError:
			obs_metrics.inc_audit_failure(ORPHAN_STREAM)
			logger.warning("media_orphan_append_failed", extra={"owner": owner}, exc_info=True)
		raise


async def discard(media: Optional[Media], *, owner: str) -> None:
	"""Release media whose record was never written; failures stay on the orphan stream."""
	try:
		await release(media, owner=owner)
	except StorageFailure:
		logger.warning("media_discard_failed", extra={"owner": owner})
