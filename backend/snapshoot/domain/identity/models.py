"""User records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional

from snapshoot.domain.proximity.geo import GeoPoint


class Role(str, Enum):
	USER = "user"
	ADMIN = "admin"


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


@dataclass(slots=True)
class User:
	id: str
	username: str
	email: str
	password_hash: str
	role: Role = Role.USER
	bio: str = ""
	avatar: Optional[str] = None
	location: Optional[GeoPoint] = None
	created_at: datetime = field(default_factory=_utcnow)
	updated_at: datetime = field(default_factory=_utcnow)

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> "User":
		location = None
		if record.get("lat") is not None and record.get("lon") is not None:
			location = GeoPoint(longitude=float(record["lon"]), latitude=float(record["lat"]))
		return cls(
			id=str(record["id"]),
			username=str(record["username"]),
			email=str(record["email"]),
			password_hash=str(record["password_hash"]),
			role=Role(record["role"]),
			bio=str(record.get("bio") or ""),
			avatar=record.get("avatar"),
			location=location,
			created_at=record["created_at"],
			updated_at=record["updated_at"],
		)
