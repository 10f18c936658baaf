"""Message records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from snapshoot.domain.common.media import Media


@dataclass(slots=True)
class Message:
	id: str
	content: str
	sender_id: str
	recipient_id: str
	is_group: bool
	read: bool
	media: Optional[Media] = None
	seq: int = 0
	created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

	@property
	def kind(self) -> str:
		return "group" if self.is_group else "direct"

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "Message":
		return cls(
			id=str(record["id"]),
			content=str(record["content"]),
			sender_id=str(record["sender_id"]),
			recipient_id=str(record["recipient_id"]),
			is_group=bool(record["is_group"]),
			read=bool(record["read"]),
			media=Media.from_record(record),
			seq=int(record["seq"]),
			created_at=record["created_at"],
		)
