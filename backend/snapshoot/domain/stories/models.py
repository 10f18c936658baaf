"""Story records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from snapshoot.domain.common.media import Media
from snapshoot.domain.errors import StorageFailure
from snapshoot.domain.proximity.geo import GeoPoint


@dataclass(slots=True)
class Story:
	id: str
	user_id: str
	location: GeoPoint
	media: Media
	expires_at: datetime
	created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

	def is_expired(self, now: datetime) -> bool:
		return now > self.expires_at

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "Story":
		media = Media.from_record(record)
		if media is None:
			raise StorageFailure("story_media_missing", "Stored story has no media")
		return cls(
			id=str(record["id"]),
			user_id=str(record["user_id"]),
			location=GeoPoint(longitude=float(record["lon"]), latitude=float(record["lat"])),
			media=media,
			expires_at=record["expires_at"],
			created_at=record["created_at"],
		)
