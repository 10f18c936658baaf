"""Group persistence."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Iterable, Optional, Protocol

import asyncpg

from snapshoot.domain.groups.models import Group
from snapshoot.infra.postgres import storage_errors

_GROUP_SELECT = """
SELECT g.id, g.name, g.creator_id, g.created_at,
	ARRAY(SELECT m.user_id FROM group_members m WHERE m.group_id = g.id ORDER BY m.seq) AS members
FROM groups g
"""


def _row_to_group(row: asyncpg.Record) -> Group:
	return Group.from_record(row, row["members"] or [])


class GroupRepository(Protocol):
	async def create(self, group: Group) -> Group:
		...

	async def get(self, group_id: str) -> Optional[Group]:
		...

	async def list_for_member(self, user_id: str) -> list[Group]:
		...

	async def rename(self, group_id: str, name: str) -> Optional[Group]:
		...

	async def add_members(self, group_id: str, member_ids: Iterable[str]) -> Optional[Group]:
		...

	async def remove_member(self, group_id: str, member_id: str) -> bool:
		"""Remove one member unless it is the last one; False when nothing was removed."""
		...

	async def delete(self, group_id: str) -> Optional[Group]:
		...


class InMemoryGroupRepository(GroupRepository):
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._groups: dict[str, Group] = {}

	async def create(self, group: Group) -> Group:
		async with self._lock:
			self._groups[group.id] = replace(group, members=list(group.members))
			return group

	async def get(self, group_id: str) -> Optional[Group]:
		group = self._groups.get(group_id)
		return replace(group, members=list(group.members)) if group else None

	async def list_for_member(self, user_id: str) -> list[Group]:
		groups = [replace(g, members=list(g.members)) for g in self._groups.values() if g.has_member(user_id)]
		return sorted(groups, key=lambda g: g.created_at)

	async def rename(self, group_id: str, name: str) -> Optional[Group]:
		async with self._lock:
			group = self._groups.get(group_id)
			if group is None:
				return None
			group.name = name
			return replace(group, members=list(group.members))

	async def add_members(self, group_id: str, member_ids: Iterable[str]) -> Optional[Group]:
		async with self._lock:
			group = self._groups.get(group_id)
			if group is None:
				return None
			for member_id in member_ids:
				if member_id not in group.members:
					group.members.append(member_id)
			return replace(group, members=list(group.members))

	async def remove_member(self, group_id: str, member_id: str) -> bool:
		async with self._lock:
			group = self._groups.get(group_id)
			if group is None or member_id not in group.members or len(group.members) <= 1:
				return False
			group.members.remove(member_id)
			return True

	async def delete(self, group_id: str) -> Optional[Group]:
		async with self._lock:
			return self._groups.pop(group_id, None)


class PostgresGroupRepository(GroupRepository):
	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def create(self, group: Group) -> Group:
		async with storage_errors():
			async with self._pool.acquire() as conn:
				async with conn.transaction():
					await conn.execute(
						"INSERT INTO groups (id, name, creator_id, created_at) VALUES ($1, $2, $3, $4)",
						group.id,
						group.name,
						group.creator_id,
						group.created_at,
					)
					await conn.executemany(
						"INSERT INTO group_members (group_id, user_id) VALUES ($1, $2)",
						[(group.id, member_id) for member_id in group.members],
					)
					row = await conn.fetchrow(f"{_GROUP_SELECT} WHERE g.id = $1", group.id)
		return _row_to_group(row)

	async def get(self, group_id: str) -> Optional[Group]:
		async with storage_errors():
			row = await self._pool.fetchrow(f"{_GROUP_SELECT} WHERE g.id = $1", group_id)
		return _row_to_group(row) if row else None

	async def list_for_member(self, user_id: str) -> list[Group]:
		async with storage_errors():
			rows = await self._pool.fetch(
				f"""
				{_GROUP_SELECT}
				WHERE EXISTS (SELECT 1 FROM group_members gm WHERE gm.group_id = g.id AND gm.user_id = $1)
				ORDER BY g.created_at
				""",
				user_id,
			)
		return [_row_to_group(row) for row in rows]

	async def rename(self, group_id: str, name: str) -> Optional[Group]:
		async with storage_errors():
			status = await self._pool.execute("UPDATE groups SET name = $2 WHERE id = $1", group_id, name)
		if status.endswith(" 0"):
			return None
		return await self.get(group_id)

	async def add_members(self, group_id: str, member_ids: Iterable[str]) -> Optional[Group]:
		ids = list(member_ids)
		async with storage_errors():
			await self._pool.execute(
				"""
				INSERT INTO group_members (group_id, user_id)
				SELECT $1, member_id
				FROM unnest($2::uuid[]) WITH ORDINALITY AS t(member_id, ord)
				WHERE EXISTS (SELECT 1 FROM groups WHERE id = $1)
				ORDER BY ord
				ON CONFLICT (group_id, user_id) DO NOTHING
				""",
				group_id,
				ids,
			)
		return await self.get(group_id)

	async def remove_member(self, group_id: str, member_id: str) -> bool:
		async with storage_errors():
			status = await self._pool.execute(
				"""
				DELETE FROM group_members
				WHERE group_id = $1 AND user_id = $2
				AND (SELECT COUNT(*) FROM group_members WHERE group_id = $1) > 1
				""",
				group_id,
				member_id,
			)
		return not status.endswith(" 0")

	async def delete(self, group_id: str) -> Optional[Group]:
		group = await self.get(group_id)
		if group is None:
			return None
		async with storage_errors():
			status = await self._pool.execute("DELETE FROM groups WHERE id = $1", group_id)
		return group if not status.endswith(" 0") else None
