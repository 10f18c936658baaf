"""Account registration, login and profile management."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional
from uuid import uuid4

from snapshoot.domain.errors import NotFound, Unauthorized
from snapshoot.domain.identity import schemas
from snapshoot.domain.identity.models import Role, User
from snapshoot.domain.proximity.geo import GeoPoint
from snapshoot.infra import jwt as jwt_helper
from snapshoot.infra.password import hash_password, verify_password
from snapshoot.infra.store import Store, get_store
from snapshoot.obs import metrics as obs_metrics
from snapshoot.settings import settings

logger = logging.getLogger(__name__)


def issue_token(user: User) -> schemas.AuthResponse:
	token = jwt_helper.encode_access({"sub": user.id, "role": user.role.value})
	return schemas.AuthResponse(token=token, expires_in=settings.access_ttl_minutes * 60)


def _patch_changes(patch: schemas.ProfilePatch) -> dict[str, Any]:
	changes = patch.model_dump(exclude_unset=True, exclude_none=True)
	password = changes.pop("password", None)
	if password is not None:
		changes["password_hash"] = hash_password(password)
	if "email" in changes:
		changes["email"] = str(changes["email"])
	return changes


class IdentityService:
	def __init__(self, store: Store) -> None:
		self._users = store.users

	async def _create(self, payload: schemas.RegisterRequest, role: Role) -> User:
		location = GeoPoint.from_geojson(payload.location.model_dump()) if payload.location else None
		user = User(
			id=str(uuid4()),
			username=payload.username,
			email=str(payload.email),
			password_hash=hash_password(payload.password),
			role=role,
			bio=payload.bio,
			avatar=payload.avatar,
			location=location,
		)
		return await self._users.create(user)

	async def register(self, payload: schemas.RegisterRequest) -> schemas.AuthResponse:
		created = await self._create(payload, Role.USER)
		logger.info("user_registered", extra={"new_user_id": created.id})
		return issue_token(created)

	async def create_user(self, payload: schemas.AdminCreateUserRequest) -> User:
		"""Admin-provisioned account; unlike ``register`` the role is chosen and no token is issued."""
		created = await self._create(payload, Role(payload.role))
		logger.info("user_created", extra={"new_user_id": created.id, "new_user_role": created.role.value})
		return created

	async def login(self, payload: schemas.LoginRequest) -> schemas.AuthResponse:
		user = await self._users.find_by_credential(payload.credential)
		if user is None or not verify_password(user.password_hash, payload.password):
			obs_metrics.inc_login("failed")
			await asyncio.sleep(settings.login_failure_delay_ms / 1000)
			raise Unauthorized("invalid_credentials", "Invalid credential or password")
		obs_metrics.inc_login("ok")
		return issue_token(user)

	async def get_user(self, user_id: str) -> User:
		user = await self._users.get(user_id)
		if user is None:
			raise NotFound("user_not_found", "No user found with the given id")
		return user

	async def list_users(self) -> list[User]:
		return await self._users.list_all()

	async def update_user(self, user_id: str, patch: schemas.ProfilePatch) -> User:
		changes = _patch_changes(patch)
		role: Optional[Role] = changes.get("role")
		if role is not None:
			changes["role"] = Role(role)
		updated = await self._users.update(user_id, changes)
		if updated is None:
			raise NotFound("user_not_found", "No user found with the given id")
		return updated

	async def delete_user(self, user_id: str) -> User:
		# Messages, stories and edges referencing the user are left in place.
		deleted = await self._users.delete(user_id)
		if deleted is None:
			raise NotFound("user_not_found", "No user found with the given id")
		logger.info("user_deleted", extra={"deleted_user_id": user_id})
		return deleted


async def get_identity_service() -> IdentityService:
	return IdentityService(await get_store())
