"""Domain models for friend edges."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping


class EdgeStatus(str, Enum):
	PENDING = "pending"
	ACCEPTED = "accepted"


@dataclass(slots=True)
class FriendEdge:
	"""Directed by the requester, symmetric in meaning once accepted."""

	id: str
	user_id: str
	friend_id: str
	status: EdgeStatus = EdgeStatus.PENDING
	created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

	def involves(self, user_id: str) -> bool:
		return user_id in (self.user_id, self.friend_id)

	def other(self, user_id: str) -> str:
		return self.friend_id if self.user_id == user_id else self.user_id

	def pair(self) -> frozenset[str]:
		return frozenset((self.user_id, self.friend_id))

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "FriendEdge":
		return cls(
			id=str(record["id"]),
			user_id=str(record["user_id"]),
			friend_id=str(record["friend_id"]),
			status=EdgeStatus(record["status"]),
			created_at=record["created_at"],
		)
