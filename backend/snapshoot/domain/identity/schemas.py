"""Pydantic schemas for accounts and user profiles."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from snapshoot.domain.identity.models import Role, User

USERNAME_PATTERN = r"^[A-Za-zÀ-ÖØ-öø-ÿ\s'-]+$"

Username = Annotated[str, Field(min_length=2, max_length=25, pattern=USERNAME_PATTERN)]
Password = Annotated[str, Field(min_length=12, max_length=32)]
Bio = Annotated[str, Field(max_length=280)]


class GeoPointIn(BaseModel):
	type: str = "Point"
	coordinates: Annotated[list[float], Field(min_length=2, max_length=2)]


class _Normalised(BaseModel):
	@field_validator("username", "email", mode="before", check_fields=False)
	@classmethod
	def _trim_lower(cls, value: Any) -> Any:
		if isinstance(value, str):
			return value.strip().lower()
		return value

	@field_validator("bio", mode="before", check_fields=False)
	@classmethod
	def _trim(cls, value: Any) -> Any:
		if isinstance(value, str):
			return value.strip()
		return value


class RegisterRequest(_Normalised):
	username: Username
	email: EmailStr
	password: Password
	bio: Bio = ""
	avatar: Optional[str] = None
	location: Optional[GeoPointIn] = None


class AdminCreateUserRequest(RegisterRequest):
	role: Role = Role.USER


class LoginRequest(BaseModel):
	credential: str = Field(..., min_length=1, max_length=254)
	password: str = Field(..., min_length=1, max_length=128)

	@field_validator("credential", mode="before")
	@classmethod
	def _trim_lower(cls, value: Any) -> Any:
		return value.strip().lower() if isinstance(value, str) else value


class AuthResponse(BaseModel):
	token: str
	token_type: str = "bearer"
	expires_in: int


class ProfilePatch(_Normalised):
	username: Optional[Username] = None
	email: Optional[EmailStr] = None
	password: Optional[Password] = None
	bio: Optional[Bio] = None
	avatar: Optional[str] = None


class AdminProfilePatch(ProfilePatch):
	role: Optional[Role] = None


class UserOut(BaseModel):
	id: str
	username: str
	email: str
	role: Role
	bio: str
	avatar: Optional[str] = None
	location: Optional[dict[str, Any]] = None
	created_at: datetime

	@classmethod
	def from_user(cls, user: User) -> "UserOut":
		return cls(
			id=user.id,
			username=user.username,
			email=user.email,
			role=user.role,
			bio=user.bio,
			avatar=user.avatar,
			location=user.location.to_geojson() if user.location else None,
			created_at=user.created_at,
		)
