"""REST API surface for friendships."""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError

from snapshoot.domain.identity.schemas import UserOut
from snapshoot.domain.social.schemas import FindUserQuery, FriendEdgeOut
from snapshoot.domain.social.service import FriendService, get_friend_service
from snapshoot.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("", response_model=List[UserOut])
async def list_friends(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: FriendService = Depends(get_friend_service),
) -> List[UserOut]:
	return [UserOut.from_user(user) for user in await service.list_friends(auth_user.id)]


@router.get("/requests", response_model=List[FriendEdgeOut])
async def list_requests(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: FriendService = Depends(get_friend_service),
) -> List[FriendEdgeOut]:
	return [FriendEdgeOut.from_edge(edge) for edge in await service.list_incoming_requests(auth_user.id)]


@router.get("/find", response_model=UserOut)
async def find_user(
	email: Optional[str] = Query(default=None),
	user_id: Optional[str] = Query(default=None),
	_: AuthenticatedUser = Depends(get_current_user),
	service: FriendService = Depends(get_friend_service),
) -> UserOut:
	try:
		query = FindUserQuery(email=email, user_id=user_id)
	except ValidationError as exc:
		raise HTTPException(422, detail="email_or_user_id_required") from exc
	user = await service.find_user(
		email=str(query.email) if query.email else None,
		user_id=str(query.user_id) if query.user_id else None,
	)
	return UserOut.from_user(user)


@router.post("/request/{user_id}", response_model=FriendEdgeOut, status_code=status.HTTP_201_CREATED)
async def send_request(
	user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: FriendService = Depends(get_friend_service),
) -> FriendEdgeOut:
	return FriendEdgeOut.from_edge(await service.send_request(auth_user.id, str(user_id)))


@router.post("/accept/{edge_id}", response_model=FriendEdgeOut)
async def accept_request(
	edge_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: FriendService = Depends(get_friend_service),
) -> FriendEdgeOut:
	return FriendEdgeOut.from_edge(await service.accept_request(str(edge_id), auth_user.id))


@router.delete("/{user_id}", response_model=FriendEdgeOut)
async def remove_friend(
	user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: FriendService = Depends(get_friend_service),
) -> FriendEdgeOut:
	return FriendEdgeOut.from_edge(await service.remove_friend(auth_user.id, str(user_id)))
