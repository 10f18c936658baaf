"""User profile endpoints; listing and editing other accounts is admin only."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from snapshoot.domain.identity import schemas
from snapshoot.domain.identity.service import IdentityService, get_identity_service
from snapshoot.infra.auth import AuthenticatedUser, get_admin_user, get_current_user

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[schemas.UserOut])
async def list_users(
	_: AuthenticatedUser = Depends(get_admin_user),
	service: IdentityService = Depends(get_identity_service),
) -> List[schemas.UserOut]:
	return [schemas.UserOut.from_user(user) for user in await service.list_users()]


@router.post("", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(
	payload: schemas.AdminCreateUserRequest,
	_: AuthenticatedUser = Depends(get_admin_user),
	service: IdentityService = Depends(get_identity_service),
) -> schemas.UserOut:
	return schemas.UserOut.from_user(await service.create_user(payload))


@router.get("/me", response_model=schemas.UserOut)
async def get_me(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: IdentityService = Depends(get_identity_service),
) -> schemas.UserOut:
	return schemas.UserOut.from_user(await service.get_user(auth_user.id))


@router.patch("/me", response_model=schemas.UserOut)
async def update_me(
	payload: schemas.ProfilePatch,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: IdentityService = Depends(get_identity_service),
) -> schemas.UserOut:
	return schemas.UserOut.from_user(await service.update_user(auth_user.id, payload))


@router.delete("/me", response_model=schemas.UserOut)
async def delete_me(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: IdentityService = Depends(get_identity_service),
) -> schemas.UserOut:
	return schemas.UserOut.from_user(await service.delete_user(auth_user.id))


@router.get("/{user_id}", response_model=schemas.UserOut)
async def get_user(
	user_id: UUID,
	_: AuthenticatedUser = Depends(get_current_user),
	service: IdentityService = Depends(get_identity_service),
) -> schemas.UserOut:
	return schemas.UserOut.from_user(await service.get_user(str(user_id)))


@router.patch("/{user_id}", response_model=schemas.UserOut)
async def admin_update_user(
	user_id: UUID,
	payload: schemas.AdminProfilePatch,
	_: AuthenticatedUser = Depends(get_admin_user),
	service: IdentityService = Depends(get_identity_service),
) -> schemas.UserOut:
	return schemas.UserOut.from_user(await service.update_user(str(user_id), payload))


@router.delete("/{user_id}", response_model=schemas.UserOut)
async def admin_delete_user(
	user_id: UUID,
	_: AuthenticatedUser = Depends(get_admin_user),
	service: IdentityService = Depends(get_identity_service),
) -> schemas.UserOut:
	return schemas.UserOut.from_user(await service.delete_user(str(user_id)))
