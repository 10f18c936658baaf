"""Repository wiring for the configured storage backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from snapshoot.domain.chat.repo import InMemoryMessageRepository, MessageRepository, PostgresMessageRepository
from snapshoot.domain.groups.repo import GroupRepository, InMemoryGroupRepository, PostgresGroupRepository
from snapshoot.domain.identity.repo import InMemoryUserRepository, PostgresUserRepository, UserRepository
from snapshoot.domain.social.repo import FriendRepository, InMemoryFriendRepository, PostgresFriendRepository
from snapshoot.domain.stories.repo import InMemoryStoryRepository, PostgresStoryRepository, StoryRepository
from snapshoot.infra.postgres import get_pool
from snapshoot.settings import settings


@dataclass(slots=True)
class Store:
	users: UserRepository
	friends: FriendRepository
	groups: GroupRepository
	messages: MessageRepository
	stories: StoryRepository


def memory_store() -> Store:
	return Store(
		users=InMemoryUserRepository(),
		friends=InMemoryFriendRepository(),
		groups=InMemoryGroupRepository(),
		messages=InMemoryMessageRepository(),
		stories=InMemoryStoryRepository(),
	)


async def postgres_store() -> Store:
	pool = await get_pool()
	return Store(
		users=PostgresUserRepository(pool),
		friends=PostgresFriendRepository(pool),
		groups=PostgresGroupRepository(pool),
		messages=PostgresMessageRepository(pool),
		stories=PostgresStoryRepository(pool),
	)


_STORE: Optional[Store] = None


async def get_store() -> Store:
	global _STORE
	if _STORE is None:
		_STORE = memory_store() if settings.store_backend == "memory" else await postgres_store()
	return _STORE


def set_store(store: Optional[Store]) -> None:
	global _STORE
	_STORE = store
