"""REST API surface for locations and nearby users."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from snapshoot.domain.identity.schemas import UserOut
from snapshoot.domain.proximity.geo import GeoPoint
from snapshoot.domain.proximity.schemas import LocationUpdateRequest, NearbyQuery, NearbyUser
from snapshoot.domain.proximity.service import ProximityService, get_proximity_service
from snapshoot.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/location", tags=["proximity"])


@router.put("", response_model=UserOut)
async def update_location(
	payload: LocationUpdateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ProximityService = Depends(get_proximity_service),
) -> UserOut:
	point = GeoPoint.from_geojson(payload.model_dump())
	return UserOut.from_user(await service.update_location(auth_user.id, point))


@router.get("/nearby", response_model=List[NearbyUser])
async def nearby_users(
	query: NearbyQuery = Depends(),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ProximityService = Depends(get_proximity_service),
) -> List[NearbyUser]:
	results = await service.list_nearby_users(
		auth_user.id,
		GeoPoint(query.longitude, query.latitude),
		radius_m=query.radius,
		limit=query.limit,
	)
	return [
		NearbyUser(id=user.id, username=user.username, avatar=user.avatar, distance_m=round(distance, 2))
		for user, distance in results
	]
