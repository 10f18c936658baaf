"""Direct and group messaging."""

from __future__ import annotations

import logging
from typing import Optional

import ulid

from snapshoot.domain.chat.models import Message
from snapshoot.domain.common import media as media_ops
from snapshoot.domain.common.media import Media, MediaUpload
from snapshoot.domain.errors import Forbidden, NotFound, SelfReference, SnapshootError, ValidationFailed
from snapshoot.domain.groups.models import Group
from snapshoot.domain.social import policy
from snapshoot.infra.store import Store, get_store
from snapshoot.obs import metrics as obs_metrics
from snapshoot.settings import settings

logger = logging.getLogger(__name__)


def clamp_page(limit: Optional[int], offset: Optional[int]) -> tuple[int, int]:
	size = settings.message_page_default if limit is None else limit
	size = max(1, min(size, settings.message_page_max))
	return size, max(0, offset or 0)


def _require_body(content: str, media: Optional[Media]) -> None:
	if not content.strip() and media is None:
		raise ValidationFailed("empty_message", "A message needs content or media")


class MessageService:
	def __init__(self, store: Store) -> None:
		self._messages = store.messages
		self._friends = store.friends
		self._groups = store.groups

	async def _group_for_member(self, group_id: str, user_id: str) -> Group:
		group = await self._groups.get(group_id)
		if group is None:
			raise NotFound("group_not_found", "Group not found")
		if not policy.can_message_group(user_id, group):
			raise Forbidden("not_group_member", "User is not a member of this group")
		return group

	async def _check_direct(self, sender_id: str, recipient_id: str) -> None:
		if sender_id == recipient_id:
			raise SelfReference("self_message", "Cannot send a message to yourself")
		is_friend = await policy.are_friends(self._friends, sender_id, recipient_id)
		if not policy.can_message_direct(is_friend):
			raise Forbidden("not_friends", "You can only message your friends")

	async def _insert(self, message: Message) -> Message:
		try:
			stored = await self._messages.insert(message)
		except SnapshootError:
			await media_ops.discard(message.media, owner=f"message:{message.id}")
			raise
		obs_metrics.inc_message_sent(stored.kind)
		return stored

	def _direct(self, sender_id: str, recipient_id: str, content: str, media: Optional[Media]) -> Message:
		return Message(
			id=str(ulid.new()),
			content=content,
			sender_id=sender_id,
			recipient_id=recipient_id,
			is_group=False,
			read=False,
			media=media,
		)

	def _group(self, sender_id: str, group_id: str, content: str, media: Optional[Media]) -> Message:
		# no per-member read tracking for groups
		return Message(
			id=str(ulid.new()),
			content=content,
			sender_id=sender_id,
			recipient_id=group_id,
			is_group=True,
			read=True,
			media=media,
		)

	async def send_direct(self, sender_id: str, recipient_id: str, content: str, media: Optional[Media] = None) -> Message:
		await self._check_direct(sender_id, recipient_id)
		_require_body(content, media)
		return await self._insert(self._direct(sender_id, recipient_id, content, media))

	async def send_direct_upload(self, sender_id: str, recipient_id: str, content: str, upload: MediaUpload) -> Message:
		await self._check_direct(sender_id, recipient_id)
		media = await media_ops.store_upload(upload)
		return await self._insert(self._direct(sender_id, recipient_id, content, media))

	async def send_group(self, sender_id: str, group_id: str, content: str, media: Optional[Media] = None) -> Message:
		await self._group_for_member(group_id, sender_id)
		_require_body(content, media)
		return await self._insert(self._group(sender_id, group_id, content, media))

	async def send_group_upload(self, sender_id: str, group_id: str, content: str, upload: MediaUpload) -> Message:
		await self._group_for_member(group_id, sender_id)
		media = await media_ops.store_upload(upload)
		return await self._insert(self._group(sender_id, group_id, content, media))

	async def list_direct(self, user_id: str, peer_id: str, *, limit: int, offset: int) -> list[Message]:
		return await self._messages.list_direct(user_id, peer_id, limit=limit, offset=offset)

	async def list_group(self, user_id: str, group_id: str, *, limit: int, offset: int) -> list[Message]:
		await self._group_for_member(group_id, user_id)
		return await self._messages.list_group(group_id, limit=limit, offset=offset)

	async def delete(self, message_id: str, acting_user_id: str) -> Message:
		message = await self._messages.delete_by_sender(message_id, acting_user_id)
		if message is None:
			raise NotFound("message_not_found", "Message not found or user is not the sender")
		obs_metrics.inc_message_deleted(message.kind)
		logger.info("message_deleted", extra={"message_id": message.id, "kind": message.kind})
		await media_ops.release(message.media, owner=f"message:{message.id}")
		return message


async def get_message_service() -> MessageService:
	return MessageService(await get_store())
