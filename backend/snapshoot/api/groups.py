"""Group management endpoints."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from snapshoot.domain.groups import schemas
from snapshoot.domain.groups.service import GroupService, get_group_service
from snapshoot.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/groups", tags=["groups"])


@router.get("", response_model=List[schemas.GroupOut])
async def list_groups(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: GroupService = Depends(get_group_service),
) -> List[schemas.GroupOut]:
	return [schemas.GroupOut.from_group(group) for group in await service.list_my_groups(auth_user.id)]


@router.post("", response_model=schemas.GroupOut, status_code=status.HTTP_201_CREATED)
async def create_group(
	payload: schemas.GroupCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: GroupService = Depends(get_group_service),
) -> schemas.GroupOut:
	group = await service.create_group(auth_user.id, payload.name, [str(member) for member in payload.members])
	return schemas.GroupOut.from_group(group)


@router.get("/{group_id}", response_model=schemas.GroupOut)
async def get_group(
	group_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: GroupService = Depends(get_group_service),
) -> schemas.GroupOut:
	return schemas.GroupOut.from_group(await service.get_group(str(group_id), auth_user.id))


@router.patch("/{group_id}", response_model=schemas.GroupOut)
async def rename_group(
	group_id: UUID,
	payload: schemas.GroupRenameRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: GroupService = Depends(get_group_service),
) -> schemas.GroupOut:
	return schemas.GroupOut.from_group(await service.rename_group(str(group_id), auth_user.id, payload.name))


@router.delete("/{group_id}", response_model=schemas.GroupOut)
async def delete_group(
	group_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: GroupService = Depends(get_group_service),
) -> schemas.GroupOut:
	return schemas.GroupOut.from_group(await service.delete_group(str(group_id), auth_user.id))


@router.post("/{group_id}/members", response_model=schemas.GroupOut)
async def add_members(
	group_id: UUID,
	payload: schemas.GroupMembersRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: GroupService = Depends(get_group_service),
) -> schemas.GroupOut:
	group = await service.add_members(str(group_id), auth_user.id, [str(member) for member in payload.members])
	return schemas.GroupOut.from_group(group)


@router.delete("/{group_id}/members/{member_id}", response_model=schemas.GroupOut)
async def remove_member(
	group_id: UUID,
	member_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: GroupService = Depends(get_group_service),
) -> schemas.GroupOut:
	group = await service.remove_member(str(group_id), auth_user.id, str(member_id))
	return schemas.GroupOut.from_group(group)
