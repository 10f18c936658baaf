"""Story persistence with expiry enforced at read time."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Iterable, Optional, Protocol

import asyncpg

from snapshoot.domain.proximity.geo import NearQuery, sql_distance
from snapshoot.domain.stories.models import Story
from snapshoot.infra.postgres import storage_errors

_STORY_COLUMNS = "id, user_id, lat, lon, media_type, media_url, media_duration, expires_at, created_at"


class StoryRepository(Protocol):
	async def insert(self, story: Story) -> Story:
		...

	async def get(self, story_id: str) -> Optional[Story]:
		...

	async def list_active_for_owners(self, owner_ids: Iterable[str], *, now: datetime) -> list[Story]:
		"""Unexpired stories of the given owners, latest expiry first."""
		...

	async def nearby(self, query: NearQuery[Story], *, now: datetime) -> list[tuple[Story, float]]:
		...

	async def delete_by_owner(self, story_id: str, owner_id: str) -> Optional[Story]:
		...


class InMemoryStoryRepository(StoryRepository):
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._stories: dict[str, Story] = {}

	async def insert(self, story: Story) -> Story:
		async with self._lock:
			self._stories[story.id] = story
			return story

	async def get(self, story_id: str) -> Optional[Story]:
		return self._stories.get(story_id)

	async def list_active_for_owners(self, owner_ids: Iterable[str], *, now: datetime) -> list[Story]:
		owners = set(owner_ids)
		stories = [s for s in self._stories.values() if s.user_id in owners and not s.is_expired(now)]
		return sorted(stories, key=lambda s: s.expires_at, reverse=True)

	async def nearby(self, query: NearQuery[Story], *, now: datetime) -> list[tuple[Story, float]]:
		# query.where carries the expiry filter
		return query.apply(list(self._stories.values()), ident=lambda s: s.user_id, location=lambda s: s.location)

	async def delete_by_owner(self, story_id: str, owner_id: str) -> Optional[Story]:
		async with self._lock:
			story = self._stories.get(story_id)
			if story is None or story.user_id != owner_id:
				return None
			return self._stories.pop(story_id)


class PostgresStoryRepository(StoryRepository):
	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def insert(self, story: Story) -> Story:
		async with storage_errors():
			row = await self._pool.fetchrow(
				f"""
				INSERT INTO stories (id, user_id, lat, lon, media_type, media_url, media_duration, expires_at, created_at)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
				RETURNING {_STORY_COLUMNS}
				""",
				story.id,
				story.user_id,
				story.location.latitude,
				story.location.longitude,
				story.media.type.value,
				story.media.url,
				story.media.duration,
				story.expires_at,
				story.created_at,
			)
		return Story.from_record(row)

	async def get(self, story_id: str) -> Optional[Story]:
		async with storage_errors():
			row = await self._pool.fetchrow(f"SELECT {_STORY_COLUMNS} FROM stories WHERE id = $1", story_id)
		return Story.from_record(row) if row else None

	async def list_active_for_owners(self, owner_ids: Iterable[str], *, now: datetime) -> list[Story]:
		ids = list(owner_ids)
		if not ids:
			return []
		async with storage_errors():
			rows = await self._pool.fetch(
				f"""
				SELECT {_STORY_COLUMNS} FROM stories
				WHERE user_id = ANY($1::uuid[]) AND expires_at >= $2
				ORDER BY expires_at DESC
				""",
				ids,
				now,
			)
		return [Story.from_record(row) for row in rows]

	async def nearby(self, query: NearQuery[Story], *, now: datetime) -> list[tuple[Story, float]]:
		async with storage_errors():
			rows = await self._pool.fetch(
				f"""
				SELECT * FROM (
					SELECT {_STORY_COLUMNS}, {sql_distance("$1", "$2")} AS distance
					FROM stories
					WHERE expires_at >= $3 AND ($4::uuid IS NULL OR user_id <> $4::uuid)
				) AS candidates
				WHERE distance <= $5
				ORDER BY distance ASC, expires_at DESC
				LIMIT $6
				""",
				query.center.latitude,
				query.center.longitude,
				now,
				query.exclude_id,
				query.max_distance_m,
				query.limit,
			)
		return [(Story.from_record(row), float(row["distance"])) for row in rows]

	async def delete_by_owner(self, story_id: str, owner_id: str) -> Optional[Story]:
		async with storage_errors():
			row = await self._pool.fetchrow(
				f"DELETE FROM stories WHERE id = $1 AND user_id = $2 RETURNING {_STORY_COLUMNS}",
				story_id,
				owner_id,
			)
		return Story.from_record(row) if row else None
