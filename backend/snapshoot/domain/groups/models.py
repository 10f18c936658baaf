"""Group records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Sequence


def ordered_members(creator_id: str, member_ids: Iterable[str]) -> list[str]:
	"""Creator first, then the given ids in order, without duplicates."""
	seen: set[str] = set()
	members: list[str] = []
	for member_id in (creator_id, *member_ids):
		if member_id not in seen:
			seen.add(member_id)
			members.append(member_id)
	return members


@dataclass(slots=True)
class Group:
	id: str
	name: str
	creator_id: str
	members: list[str]
	created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

	def has_member(self, user_id: str) -> bool:
		return user_id in self.members

	@classmethod
	def from_record(cls, record: Mapping[str, Any], members: Sequence[Any]) -> "Group":
		return cls(
			id=str(record["id"]),
			name=str(record["name"]),
			creator_id=str(record["creator_id"]),
			members=[str(member) for member in members],
			created_at=record["created_at"],
		)
