"""Ephemeral geotagged stories.

Stories are never evicted in the background: expiry is decided at read time
against the service clock.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import uuid4

from snapshoot.domain.common import media as media_ops
from snapshoot.domain.common.media import Media, MediaUpload
from snapshoot.domain.errors import NotFound, SnapshootError
from snapshoot.domain.proximity.geo import GeoPoint, NearQuery
from snapshoot.domain.social import policy
from snapshoot.domain.social.service import FriendService
from snapshoot.domain.stories.models import Story
from snapshoot.infra.store import Store, get_store
from snapshoot.obs import metrics as obs_metrics
from snapshoot.settings import settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
	return datetime.now(timezone.utc)


class StoryService:
	def __init__(self, store: Store, *, clock: Clock = utcnow) -> None:
		self._stories = store.stories
		self._friends = store.friends
		self._friend_service = FriendService(store)
		self._clock = clock

	async def create(self, owner_id: str, location: GeoPoint, media: Media) -> Story:
		now = self._clock()
		story = Story(
			id=str(uuid4()),
			user_id=owner_id,
			location=location,
			media=media,
			expires_at=now + timedelta(hours=settings.story_ttl_hours),
			created_at=now,
		)
		try:
			stored = await self._stories.insert(story)
		except SnapshootError:
			await media_ops.discard(media, owner=f"story:{story.id}")
			raise
		obs_metrics.inc_story_created()
		return stored

	async def create_upload(self, owner_id: str, location: GeoPoint, upload: MediaUpload) -> Story:
		media = await media_ops.store_upload(upload)
		return await self.create(owner_id, location, media)

	async def list_friends_stories(self, viewer_id: str) -> list[Story]:
		friend_ids = await self._friend_service.friend_ids(viewer_id)
		return await self._stories.list_active_for_owners(friend_ids, now=self._clock())

	async def list_nearby(
		self,
		viewer_id: str,
		center: GeoPoint,
		radius_m: Optional[float] = None,
	) -> list[tuple[Story, float]]:
		now = self._clock()
		query: NearQuery[Story] = NearQuery(
			center=center,
			max_distance_m=settings.nearby_default_radius_m if radius_m is None else radius_m,
			limit=settings.nearby_result_cap,
			where=lambda story: not story.is_expired(now),
			tie_break=lambda story: -story.expires_at.timestamp(),
		)
		obs_metrics.inc_nearby_query("stories")
		return await self._stories.nearby(query, now=now)

	async def get_by_id(self, story_id: str, viewer_id: str) -> Story:
		story = await self._stories.get(story_id)
		if story is None:
			raise NotFound("story_not_found", "Story not found or you don't have access")
		is_friend = viewer_id != story.user_id and await policy.are_friends(self._friends, viewer_id, story.user_id)
		if not policy.can_view_story(viewer_id, story, is_friend=is_friend, now=self._clock()):
			logger.debug("expired_story_hidden", extra={"story_id": story_id})
			raise NotFound("story_not_found", "Story not found or you don't have access")
		return story

	async def delete(self, story_id: str, acting_user_id: str) -> Story:
		story = await self._stories.delete_by_owner(story_id, acting_user_id)
		if story is None:
			raise NotFound("story_not_found", "Story not found or user is not the creator")
		obs_metrics.inc_story_deleted()
		await media_ops.release(story.media, owner=f"story:{story.id}")
		return story


async def get_story_service() -> StoryService:
	return StoryService(await get_store())
