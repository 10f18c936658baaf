"""Pydantic schemas for stories."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from snapshoot.domain.common.media import MediaIn, MediaOut
from snapshoot.domain.proximity.schemas import LocationUpdateRequest
from snapshoot.domain.stories.models import Story


class CreateStoryRequest(BaseModel):
	media: MediaIn
	location: LocationUpdateRequest


class StoryOut(BaseModel):
	id: str
	user_id: str
	location: dict[str, Any]
	media: MediaOut
	expires_at: datetime
	created_at: datetime
	distance_m: Optional[float] = None

	@classmethod
	def from_story(cls, story: Story, *, distance_m: Optional[float] = None) -> "StoryOut":
		return cls(
			id=story.id,
			user_id=story.user_id,
			location=story.location.to_geojson(),
			media=MediaOut(type=story.media.type, url=story.media.url, duration=story.media.duration),
			expires_at=story.expires_at,
			created_at=story.created_at,
			distance_m=round(distance_m, 2) if distance_m is not None else None,
		)
