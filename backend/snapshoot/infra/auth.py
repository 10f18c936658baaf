"""Authentication helpers for FastAPI endpoints.

- Bearer access JWTs are verified with settings.secret_key.
- X-User-* headers are only respected in development.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt

from snapshoot.infra import jwt as jwt_helper
from snapshoot.obs import logging as obs_logging
from snapshoot.obs import metrics as obs_metrics
from snapshoot.settings import settings

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	role: str = ROLE_USER

	def is_admin(self) -> bool:
		return self.role == ROLE_ADMIN


_bearer_scheme = HTTPBearer(auto_error=False)


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode an access JWT and return the caller it names."""
	try:
		payload = jwt_helper.decode_access(token)
	except jwt.PyJWTError as exc:
		obs_metrics.inc_auth_rejected("invalid_token")
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token") from exc

	sub = str(payload.get("sub") or "").strip()
	if not sub:
		obs_metrics.inc_auth_rejected("invalid_token")
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	role = str(payload.get("role") or ROLE_USER).strip().lower()
	obs_logging.bind_context(user_id=sub)
	return AuthenticatedUser(id=sub, role=role)


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_role: Optional[str] = Header(default=None, alias="X-User-Role"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user.

	In development simple headers are accepted. Everywhere else a valid Bearer
	JWT is required.
	"""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)

	if settings.is_dev() and x_user_id:
		try:
			user_id = str(UUID(x_user_id))
		except ValueError as exc:
			obs_metrics.inc_auth_rejected("invalid_header")
			raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token") from exc
		return AuthenticatedUser(id=user_id, role=(x_user_role or ROLE_USER).strip().lower())

	obs_metrics.inc_auth_rejected("missing_token")
	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")


async def get_admin_user(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
	if user.is_admin():
		return user
	raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="insufficient_role")
