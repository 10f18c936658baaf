"""User locations and nearby-user discovery."""

from __future__ import annotations

from typing import Optional

from snapshoot.domain.errors import NotFound
from snapshoot.domain.identity.models import User
from snapshoot.domain.proximity.geo import GeoPoint, NearQuery
from snapshoot.infra.store import Store, get_store
from snapshoot.obs import metrics as obs_metrics
from snapshoot.settings import settings


class ProximityService:
	def __init__(self, store: Store) -> None:
		self._users = store.users

	async def update_location(self, user_id: str, point: GeoPoint) -> User:
		user = await self._users.set_location(user_id, point)
		if user is None:
			raise NotFound("user_not_found", "No user found")
		return user

	async def list_nearby_users(
		self,
		viewer_id: str,
		center: GeoPoint,
		*,
		radius_m: Optional[float] = None,
		limit: Optional[int] = None,
	) -> list[tuple[User, float]]:
		cap = settings.nearby_result_cap
		query: NearQuery[User] = NearQuery(
			center=center,
			max_distance_m=settings.nearby_default_radius_m if radius_m is None else radius_m,
			limit=cap if limit is None else min(limit, cap),
			exclude_id=viewer_id,
		)
		obs_metrics.inc_nearby_query("users")
		return await self._users.nearby(query)


async def get_proximity_service() -> ProximityService:
	return ProximityService(await get_store())
