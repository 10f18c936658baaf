"""Pydantic schemas for friend edges."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, model_validator

from snapshoot.domain.social.models import EdgeStatus, FriendEdge


class FriendEdgeOut(BaseModel):
	id: str
	user_id: str
	friend_id: str
	status: EdgeStatus
	created_at: datetime

	@classmethod
	def from_edge(cls, edge: FriendEdge) -> "FriendEdgeOut":
		return cls(
			id=edge.id,
			user_id=edge.user_id,
			friend_id=edge.friend_id,
			status=edge.status,
			created_at=edge.created_at,
		)


class FindUserQuery(BaseModel):
	email: Optional[EmailStr] = None
	user_id: Optional[UUID] = None

	@model_validator(mode="after")
	def _one_of(self) -> "FindUserQuery":
		if (self.email is None) == (self.user_id is None):
			raise ValueError("provide exactly one of email or user_id")
		return self
