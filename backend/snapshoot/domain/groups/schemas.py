"""Pydantic schemas for groups."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from snapshoot.domain.groups.models import Group

GroupName = Annotated[str, Field(min_length=3, max_length=50)]


class GroupCreateRequest(BaseModel):
	name: GroupName
	members: list[UUID] = Field(default_factory=list)

	@field_validator("name", mode="before")
	@classmethod
	def _strip_name(cls, value):
		return value.strip() if isinstance(value, str) else value


class GroupRenameRequest(BaseModel):
	name: GroupName

	@field_validator("name", mode="before")
	@classmethod
	def _strip_name(cls, value):
		return value.strip() if isinstance(value, str) else value


class GroupMembersRequest(BaseModel):
	members: list[UUID] = Field(..., min_length=1)


class GroupOut(BaseModel):
	id: str
	name: str
	creator_id: str
	members: list[str]
	created_at: datetime

	@classmethod
	def from_group(cls, group: Group) -> "GroupOut":
		return cls(
			id=group.id,
			name=group.name,
			creator_id=group.creator_id,
			members=list(group.members),
			created_at=group.created_at,
		)
