"""Story endpoints.

``POST /stories`` references media that is already stored; ``POST /stories/media``
takes the raw upload with the location as query parameters.
"""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, Request, status

from snapshoot.domain.common.media import MediaUpload
from snapshoot.domain.proximity.geo import GeoPoint
from snapshoot.domain.stories.schemas import CreateStoryRequest, StoryOut
from snapshoot.domain.stories.service import StoryService, get_story_service
from snapshoot.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/stories", tags=["stories"])


@router.get("", response_model=List[StoryOut])
async def list_friends_stories(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: StoryService = Depends(get_story_service),
) -> List[StoryOut]:
	return [StoryOut.from_story(story) for story in await service.list_friends_stories(auth_user.id)]


@router.post("", response_model=StoryOut, status_code=status.HTTP_201_CREATED)
async def create_story(
	payload: CreateStoryRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: StoryService = Depends(get_story_service),
) -> StoryOut:
	location = GeoPoint.from_geojson(payload.location.model_dump())
	story = await service.create(auth_user.id, location, payload.media.to_media())
	return StoryOut.from_story(story)


@router.post("/media", response_model=StoryOut, status_code=status.HTTP_201_CREATED)
async def upload_story(
	request: Request,
	longitude: float = Query(..., ge=-180.0, le=180.0),
	latitude: float = Query(..., ge=-90.0, le=90.0),
	duration: Optional[float] = Query(default=None, ge=0),
	content_type: Optional[str] = Header(default=None, alias="Content-Type"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: StoryService = Depends(get_story_service),
) -> StoryOut:
	upload = MediaUpload(data=await request.body(), content_type=content_type or "", duration=duration)
	story = await service.create_upload(auth_user.id, GeoPoint(longitude, latitude), upload)
	return StoryOut.from_story(story)


@router.get("/nearby", response_model=List[StoryOut])
async def list_nearby_stories(
	longitude: float = Query(..., ge=-180.0, le=180.0),
	latitude: float = Query(..., ge=-90.0, le=90.0),
	radius: Optional[float] = Query(default=None, gt=0, le=100_000),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: StoryService = Depends(get_story_service),
) -> List[StoryOut]:
	results = await service.list_nearby(auth_user.id, GeoPoint(longitude, latitude), radius)
	return [StoryOut.from_story(story, distance_m=distance) for story, distance in results]


@router.get("/{story_id}", response_model=StoryOut)
async def get_story(
	story_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: StoryService = Depends(get_story_service),
) -> StoryOut:
	return StoryOut.from_story(await service.get_by_id(str(story_id), auth_user.id))


@router.delete("/{story_id}", response_model=StoryOut)
async def delete_story(
	story_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: StoryService = Depends(get_story_service),
) -> StoryOut:
	return StoryOut.from_story(await service.delete(str(story_id), auth_user.id))
