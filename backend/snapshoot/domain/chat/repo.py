"""Message persistence ordered by insertion sequence."""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import replace
from typing import Optional, Protocol

import asyncpg

from snapshoot.domain.chat.models import Message
from snapshoot.infra.postgres import storage_errors

_MESSAGE_COLUMNS = (
	"id, content, sender_id, recipient_id, is_group, read, media_type, media_url, media_duration, seq, created_at"
)


class MessageRepository(Protocol):
	async def insert(self, message: Message) -> Message:
		...

	async def list_direct(self, user_id: str, peer_id: str, *, limit: int, offset: int) -> list[Message]:
		...

	async def list_group(self, group_id: str, *, limit: int, offset: int) -> list[Message]:
		...

	async def delete_by_sender(self, message_id: str, sender_id: str) -> Optional[Message]:
		...


class InMemoryMessageRepository(MessageRepository):
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._messages: dict[str, Message] = {}
		self._seq = itertools.count(1)

	async def insert(self, message: Message) -> Message:
		async with self._lock:
			stored = replace(message, seq=next(self._seq))
			self._messages[stored.id] = stored
			return stored

	def _page(self, messages: list[Message], limit: int, offset: int) -> list[Message]:
		messages.sort(key=lambda m: m.seq, reverse=True)
		return messages[offset : offset + limit]

	async def list_direct(self, user_id: str, peer_id: str, *, limit: int, offset: int) -> list[Message]:
		pair = {user_id, peer_id}
		matches = [
			m
			for m in self._messages.values()
			if not m.is_group and {m.sender_id, m.recipient_id} == pair
		]
		return self._page(matches, limit, offset)

	async def list_group(self, group_id: str, *, limit: int, offset: int) -> list[Message]:
		matches = [m for m in self._messages.values() if m.is_group and m.recipient_id == group_id]
		return self._page(matches, limit, offset)

	async def delete_by_sender(self, message_id: str, sender_id: str) -> Optional[Message]:
		async with self._lock:
			message = self._messages.get(message_id)
			if message is None or message.sender_id != sender_id:
				return None
			return self._messages.pop(message_id)


class PostgresMessageRepository(MessageRepository):
	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def insert(self, message: Message) -> Message:
		media = message.media
		async with storage_errors():
			row = await self._pool.fetchrow(
				f"""
				INSERT INTO messages (id, content, sender_id, recipient_id, is_group, read, media_type, media_url, media_duration, created_at)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
				RETURNING {_MESSAGE_COLUMNS}
				""",
				message.id,
				message.content,
				message.sender_id,
				message.recipient_id,
				message.is_group,
				message.read,
				media.type.value if media else None,
				media.url if media else None,
				media.duration if media else None,
				message.created_at,
			)
		return Message.from_record(row)

	async def list_direct(self, user_id: str, peer_id: str, *, limit: int, offset: int) -> list[Message]:
		async with storage_errors():
			rows = await self._pool.fetch(
				f"""
				SELECT {_MESSAGE_COLUMNS} FROM messages
				WHERE is_group = FALSE
				AND ((sender_id = $1 AND recipient_id = $2) OR (sender_id = $2 AND recipient_id = $1))
				ORDER BY seq DESC
				LIMIT $3 OFFSET $4
				""",
				user_id,
				peer_id,
				limit,
				offset,
			)
		return [Message.from_record(row) for row in rows]

	async def list_group(self, group_id: str, *, limit: int, offset: int) -> list[Message]:
		async with storage_errors():
			rows = await self._pool.fetch(
				f"""
				SELECT {_MESSAGE_COLUMNS} FROM messages
				WHERE is_group = TRUE AND recipient_id = $1
				ORDER BY seq DESC
				LIMIT $2 OFFSET $3
				""",
				group_id,
				limit,
				offset,
			)
		return [Message.from_record(row) for row in rows]

	async def delete_by_sender(self, message_id: str, sender_id: str) -> Optional[Message]:
		async with storage_errors():
			row = await self._pool.fetchrow(
				f"DELETE FROM messages WHERE id = $1 AND sender_id = $2 RETURNING {_MESSAGE_COLUMNS}",
				message_id,
				sender_id,
			)
		return Message.from_record(row) if row else None
