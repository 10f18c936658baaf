"""Direct and group messaging endpoints.

JSON sends may reference already stored media. Uploads go to the ``/media``
variants as the raw request body with the media Content-Type;
caption and video duration travel as query parameters.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, Request, status

from snapshoot.domain.chat import schemas
from snapshoot.domain.chat.service import MessageService, clamp_page, get_message_service
from snapshoot.domain.common.media import Media, MediaUpload
from snapshoot.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/messages", tags=["chat"])


async def _read_upload(request: Request, content_type: Optional[str], duration: Optional[float]) -> MediaUpload:
	return MediaUpload(data=await request.body(), content_type=content_type or "", duration=duration)


def _attached(payload: schemas.SendMessageRequest) -> Optional[Media]:
	return payload.media.to_media() if payload.media else None


def _page(messages, limit: int, offset: int) -> schemas.MessageListResponse:
	return schemas.MessageListResponse(
		items=[schemas.MessageOut.from_message(message) for message in messages],
		limit=limit,
		offset=offset,
	)


@router.get("/direct/{user_id}", response_model=schemas.MessageListResponse)
async def list_direct(
	user_id: UUID,
	limit: Optional[int] = Query(default=None, ge=1),
	offset: Optional[int] = Query(default=None, ge=0),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: MessageService = Depends(get_message_service),
) -> schemas.MessageListResponse:
	size, start = clamp_page(limit, offset)
	messages = await service.list_direct(auth_user.id, str(user_id), limit=size, offset=start)
	return _page(messages, size, start)


@router.post("/direct/{user_id}", response_model=schemas.MessageOut, status_code=status.HTTP_201_CREATED)
async def send_direct(
	user_id: UUID,
	payload: schemas.SendMessageRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: MessageService = Depends(get_message_service),
) -> schemas.MessageOut:
	message = await service.send_direct(auth_user.id, str(user_id), payload.content, _attached(payload))
	return schemas.MessageOut.from_message(message)


@router.post("/direct/{user_id}/media", response_model=schemas.MessageOut, status_code=status.HTTP_201_CREATED)
async def send_direct_media(
	user_id: UUID,
	request: Request,
	content: str = Query(default="", max_length=schemas.MAX_CONTENT_LENGTH),
	duration: Optional[float] = Query(default=None, ge=0),
	content_type: Optional[str] = Header(default=None, alias="Content-Type"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: MessageService = Depends(get_message_service),
) -> schemas.MessageOut:
	upload = await _read_upload(request, content_type, duration)
	message = await service.send_direct_upload(auth_user.id, str(user_id), content, upload)
	return schemas.MessageOut.from_message(message)


@router.get("/group/{group_id}", response_model=schemas.MessageListResponse)
async def list_group(
	group_id: UUID,
	limit: Optional[int] = Query(default=None, ge=1),
	offset: Optional[int] = Query(default=None, ge=0),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: MessageService = Depends(get_message_service),
) -> schemas.MessageListResponse:
	size, start = clamp_page(limit, offset)
	messages = await service.list_group(auth_user.id, str(group_id), limit=size, offset=start)
	return _page(messages, size, start)


@router.post("/group/{group_id}", response_model=schemas.MessageOut, status_code=status.HTTP_201_CREATED)
async def send_group(
	group_id: UUID,
	payload: schemas.SendMessageRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: MessageService = Depends(get_message_service),
) -> schemas.MessageOut:
	message = await service.send_group(auth_user.id, str(group_id), payload.content, _attached(payload))
	return schemas.MessageOut.from_message(message)


@router.post("/group/{group_id}/media", response_model=schemas.MessageOut, status_code=status.HTTP_201_CREATED)
async def send_group_media(
	group_id: UUID,
	request: Request,
	content: str = Query(default="", max_length=schemas.MAX_CONTENT_LENGTH),
	duration: Optional[float] = Query(default=None, ge=0),
	content_type: Optional[str] = Header(default=None, alias="Content-Type"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: MessageService = Depends(get_message_service),
) -> schemas.MessageOut:
	upload = await _read_upload(request, content_type, duration)
	message = await service.send_group_upload(auth_user.id, str(group_id), content, upload)
	return schemas.MessageOut.from_message(message)


@router.delete("/{message_id}", response_model=schemas.MessageOut)
async def delete_message(
	message_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: MessageService = Depends(get_message_service),
) -> schemas.MessageOut:
	return schemas.MessageOut.from_message(await service.delete(message_id, auth_user.id))
