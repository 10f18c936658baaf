"""Friend edge persistence."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Optional, Protocol

import asyncpg

from snapshoot.domain.errors import AlreadyExists
from snapshoot.domain.social.models import EdgeStatus, FriendEdge
from snapshoot.infra.postgres import storage_errors

_EDGE_COLUMNS = "id, user_id, friend_id, status, created_at"


class FriendRepository(Protocol):
	async def insert_pending(self, edge: FriendEdge) -> FriendEdge:
		"""Insert a new edge; ``AlreadyExists`` if the unordered pair has one."""
		...

	async def find_between(self, user_a: str, user_b: str) -> Optional[FriendEdge]:
		...

	async def accept(self, edge_id: str, recipient_id: str) -> Optional[FriendEdge]:
		"""Flip a pending edge addressed to ``recipient_id``; None when no such edge."""
		...

	async def delete_between(self, user_a: str, user_b: str) -> Optional[FriendEdge]:
		...

	async def list_accepted(self, user_id: str) -> list[FriendEdge]:
		...

	async def list_incoming(self, user_id: str) -> list[FriendEdge]:
		...


class InMemoryFriendRepository(FriendRepository):
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._edges: dict[str, FriendEdge] = {}

	def _between(self, user_a: str, user_b: str) -> Optional[FriendEdge]:
		pair = frozenset((user_a, user_b))
		for edge in self._edges.values():
			if edge.pair() == pair:
				return edge
		return None

	async def insert_pending(self, edge: FriendEdge) -> FriendEdge:
		async with self._lock:
			if self._between(edge.user_id, edge.friend_id) is not None:
				raise AlreadyExists("friend_edge_exists", "Friend request already exists or users are already friends")
			self._edges[edge.id] = edge
			return edge

	async def find_between(self, user_a: str, user_b: str) -> Optional[FriendEdge]:
		return self._between(user_a, user_b)

	async def accept(self, edge_id: str, recipient_id: str) -> Optional[FriendEdge]:
		async with self._lock:
			edge = self._edges.get(edge_id)
			if edge is None or edge.friend_id != recipient_id or edge.status is not EdgeStatus.PENDING:
				return None
			accepted = replace(edge, status=EdgeStatus.ACCEPTED)
			self._edges[edge_id] = accepted
			return accepted

	async def delete_between(self, user_a: str, user_b: str) -> Optional[FriendEdge]:
		async with self._lock:
			edge = self._between(user_a, user_b)
			if edge is None:
				return None
			return self._edges.pop(edge.id)

	async def list_accepted(self, user_id: str) -> list[FriendEdge]:
		return [
			edge
			for edge in self._edges.values()
			if edge.status is EdgeStatus.ACCEPTED and edge.involves(user_id)
		]

	async def list_incoming(self, user_id: str) -> list[FriendEdge]:
		edges = [
			edge
			for edge in self._edges.values()
			if edge.status is EdgeStatus.PENDING and edge.friend_id == user_id
		]
		return sorted(edges, key=lambda e: e.created_at, reverse=True)


class PostgresFriendRepository(FriendRepository):
	"""Edges live in friend_edges; a unique index on the unordered pair backs insert_pending."""

	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def insert_pending(self, edge: FriendEdge) -> FriendEdge:
		try:
			async with storage_errors():
				row = await self._pool.fetchrow(
					f"""
					INSERT INTO friend_edges (id, user_id, friend_id, status, created_at)
					VALUES ($1, $2, $3, $4, $5)
					RETURNING {_EDGE_COLUMNS}
					""",
					edge.id,
					edge.user_id,
					edge.friend_id,
					edge.status.value,
					edge.created_at,
				)
		except AlreadyExists as exc:
			raise AlreadyExists("friend_edge_exists", "Friend request already exists or users are already friends") from exc
		return FriendEdge.from_record(row)

	async def find_between(self, user_a: str, user_b: str) -> Optional[FriendEdge]:
		async with storage_errors():
			row = await self._pool.fetchrow(
				f"""
				SELECT {_EDGE_COLUMNS} FROM friend_edges
				WHERE (user_id = $1 AND friend_id = $2) OR (user_id = $2 AND friend_id = $1)
				LIMIT 1
				""",
				user_a,
				user_b,
			)
		return FriendEdge.from_record(row) if row else None

	async def accept(self, edge_id: str, recipient_id: str) -> Optional[FriendEdge]:
		async with storage_errors():
			row = await self._pool.fetchrow(
				f"""
				UPDATE friend_edges SET status = 'accepted', updated_at = NOW()
				WHERE id = $1 AND friend_id = $2 AND status = 'pending'
				RETURNING {_EDGE_COLUMNS}
				""",
				edge_id,
				recipient_id,
			)
		return FriendEdge.from_record(row) if row else None

	async def delete_between(self, user_a: str, user_b: str) -> Optional[FriendEdge]:
		async with storage_errors():
			row = await self._pool.fetchrow(
				f"""
				DELETE FROM friend_edges
				WHERE (user_id = $1 AND friend_id = $2) OR (user_id = $2 AND friend_id = $1)
				RETURNING {_EDGE_COLUMNS}
				""",
				user_a,
				user_b,
			)
		return FriendEdge.from_record(row) if row else None

	async def list_accepted(self, user_id: str) -> list[FriendEdge]:
		async with storage_errors():
			rows = await self._pool.fetch(
				f"""
				SELECT {_EDGE_COLUMNS} FROM friend_edges
				WHERE (user_id = $1 OR friend_id = $1) AND status = 'accepted'
				""",
				user_id,
			)
		return [FriendEdge.from_record(row) for row in rows]

	async def list_incoming(self, user_id: str) -> list[FriendEdge]:
		async with storage_errors():
			rows = await self._pool.fetch(
				f"""
				SELECT {_EDGE_COLUMNS} FROM friend_edges
				WHERE friend_id = $1 AND status = 'pending'
				ORDER BY created_at DESC
				""",
				user_id,
			)
		return [FriendEdge.from_record(row) for row in rows]
