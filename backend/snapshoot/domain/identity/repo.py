"""User persistence: repository protocol plus in-memory and Postgres stores."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Protocol

import asyncpg

from snapshoot.domain.errors import AlreadyExists
from snapshoot.domain.identity.models import Role, User
from snapshoot.domain.proximity.geo import GeoPoint, NearQuery, sql_distance
from snapshoot.infra.postgres import storage_errors

_USER_COLUMNS = "id, username, email, password_hash, role, bio, avatar, lat, lon, created_at, updated_at"
_UPDATABLE = frozenset({"username", "email", "password_hash", "role", "bio", "avatar"})


class UserRepository(Protocol):
	async def create(self, user: User) -> User:
		...

	async def get(self, user_id: str) -> Optional[User]:
		...

	async def get_many(self, user_ids: Iterable[str]) -> list[User]:
		...

	async def find_by_credential(self, credential: str) -> Optional[User]:
		...

	async def find_by_email(self, email: str) -> Optional[User]:
		...

	async def list_all(self) -> list[User]:
		...

	async def update(self, user_id: str, changes: dict[str, Any]) -> Optional[User]:
		...

	async def delete(self, user_id: str) -> Optional[User]:
		...

	async def set_location(self, user_id: str, point: GeoPoint) -> Optional[User]:
		...

	async def nearby(self, query: NearQuery[User]) -> list[tuple[User, float]]:
		...


class InMemoryUserRepository(UserRepository):
	"""Repository used by tests and STORE_BACKEND=memory."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._users: dict[str, User] = {}

	def _ensure_unique(self, username: str, email: str, *, skip_id: Optional[str] = None) -> None:
		for existing in self._users.values():
			if existing.id == skip_id:
				continue
			if existing.username == username or existing.email == email:
				raise AlreadyExists("user_exists", "Username or email already registered")

	async def create(self, user: User) -> User:
		async with self._lock:
			self._ensure_unique(user.username, user.email)
			self._users[user.id] = user
			return user

	async def get(self, user_id: str) -> Optional[User]:
		return self._users.get(user_id)

	async def get_many(self, user_ids: Iterable[str]) -> list[User]:
		return [self._users[uid] for uid in user_ids if uid in self._users]

	async def find_by_credential(self, credential: str) -> Optional[User]:
		for user in self._users.values():
			if user.username == credential or user.email == credential:
				return user
		return None

	async def find_by_email(self, email: str) -> Optional[User]:
		for user in self._users.values():
			if user.email == email:
				return user
		return None

	async def list_all(self) -> list[User]:
		return sorted(self._users.values(), key=lambda u: u.created_at)

	async def update(self, user_id: str, changes: dict[str, Any]) -> Optional[User]:
		async with self._lock:
			current = self._users.get(user_id)
			if current is None:
				return None
			fields = {k: v for k, v in changes.items() if k in _UPDATABLE}
			updated = replace(current, **fields, updated_at=datetime.now(timezone.utc))
			self._ensure_unique(updated.username, updated.email, skip_id=user_id)
			self._users[user_id] = updated
			return updated

	async def delete(self, user_id: str) -> Optional[User]:
		async with self._lock:
			return self._users.pop(user_id, None)

	async def set_location(self, user_id: str, point: GeoPoint) -> Optional[User]:
		async with self._lock:
			current = self._users.get(user_id)
			if current is None:
				return None
			updated = replace(current, location=point, updated_at=datetime.now(timezone.utc))
			self._users[user_id] = updated
			return updated

	async def nearby(self, query: NearQuery[User]) -> list[tuple[User, float]]:
		return query.apply(list(self._users.values()), ident=lambda u: u.id, location=lambda u: u.location)


class PostgresUserRepository(UserRepository):
	"""Stores accounts in the users table."""

	def __init__(self, pool: asyncpg.Pool) -> None:
		self._pool = pool

	async def create(self, user: User) -> User:
		lat = user.location.latitude if user.location else None
		lon = user.location.longitude if user.location else None
		async with storage_errors():
			row = await self._pool.fetchrow(
				f"""
				INSERT INTO users (id, username, email, password_hash, role, bio, avatar, lat, lon, created_at, updated_at)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $10)
				RETURNING {_USER_COLUMNS}
				""",
				user.id,
				user.username,
				user.email,
				user.password_hash,
				user.role.value,
				user.bio,
				user.avatar,
				lat,
				lon,
				user.created_at,
			)
		return User.from_record(row)

	async def get(self, user_id: str) -> Optional[User]:
		async with storage_errors():
			row = await self._pool.fetchrow(f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1", user_id)
		return User.from_record(row) if row else None

	async def get_many(self, user_ids: Iterable[str]) -> list[User]:
		ids = list(user_ids)
		if not ids:
			return []
		async with storage_errors():
			rows = await self._pool.fetch(
				f"SELECT {_USER_COLUMNS} FROM users WHERE id = ANY($1::uuid[]) ORDER BY username",
				ids,
			)
		return [User.from_record(row) for row in rows]

	async def find_by_credential(self, credential: str) -> Optional[User]:
		async with storage_errors():
			row = await self._pool.fetchrow(
				f"SELECT {_USER_COLUMNS} FROM users WHERE username = $1 OR email = $1 LIMIT 1",
				credential,
			)
		return User.from_record(row) if row else None

	async def find_by_email(self, email: str) -> Optional[User]:
		async with storage_errors():
			row = await self._pool.fetchrow(f"SELECT {_USER_COLUMNS} FROM users WHERE email = $1", email)
		return User.from_record(row) if row else None

	async def list_all(self) -> list[User]:
		async with storage_errors():
			rows = await self._pool.fetch(f"SELECT {_USER_COLUMNS} FROM users ORDER BY created_at")
		return [User.from_record(row) for row in rows]

	async def update(self, user_id: str, changes: dict[str, Any]) -> Optional[User]:
		fields = {k: (v.value if isinstance(v, Role) else v) for k, v in changes.items() if k in _UPDATABLE}
		if not fields:
			return await self.get(user_id)
		assignments = ", ".join(f"{column} = ${idx}" for idx, column in enumerate(fields, start=2))
		async with storage_errors():
			row = await self._pool.fetchrow(
				f"""
				UPDATE users SET {assignments}, updated_at = NOW()
				WHERE id = $1
				RETURNING {_USER_COLUMNS}
				""",
				user_id,
				*fields.values(),
			)
		return User.from_record(row) if row else None

	async def delete(self, user_id: str) -> Optional[User]:
		async with storage_errors():
			row = await self._pool.fetchrow(f"DELETE FROM users WHERE id = $1 RETURNING {_USER_COLUMNS}", user_id)
		return User.from_record(row) if row else None

	async def set_location(self, user_id: str, point: GeoPoint) -> Optional[User]:
		async with storage_errors():
			row = await self._pool.fetchrow(
				f"""
				UPDATE users SET lat = $2, lon = $3, updated_at = NOW()
				WHERE id = $1
				RETURNING {_USER_COLUMNS}
				""",
				user_id,
				point.latitude,
				point.longitude,
			)
		return User.from_record(row) if row else None

	async def nearby(self, query: NearQuery[User]) -> list[tuple[User, float]]:
		async with storage_errors():
			rows = await self._pool.fetch(
				f"""
				SELECT * FROM (
					SELECT {_USER_COLUMNS}, {sql_distance("$1", "$2")} AS distance
					FROM users
					WHERE lat IS NOT NULL AND lon IS NOT NULL AND ($3::uuid IS NULL OR id <> $3::uuid)
				) AS candidates
				WHERE distance <= $4
				ORDER BY distance ASC
				LIMIT $5
				""",
				query.center.latitude,
				query.center.longitude,
				query.exclude_id,
				query.max_distance_m,
				query.limit,
			)
		return [(User.from_record(row), float(row["distance"])) for row in rows]

