"""Pydantic schemas for messages."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from snapshoot.domain.chat.models import Message
from snapshoot.domain.common.media import MediaIn, MediaOut

MAX_CONTENT_LENGTH = 1000


class SendMessageRequest(BaseModel):
	content: str = Field(default="", max_length=MAX_CONTENT_LENGTH)
	media: Optional[MediaIn] = None


class MessageOut(BaseModel):
	id: str
	content: str
	sender_id: str
	recipient_id: str
	is_group: bool
	read: bool
	media: Optional[MediaOut] = None
	created_at: datetime

	@classmethod
	def from_message(cls, message: Message) -> "MessageOut":
		return cls(
			id=message.id,
			content=message.content,
			sender_id=message.sender_id,
			recipient_id=message.recipient_id,
			is_group=message.is_group,
			read=message.read,
			media=MediaOut.from_media(message.media),
			created_at=message.created_at,
		)


class MessageListResponse(BaseModel):
	items: list[MessageOut]
	limit: int
	offset: int
