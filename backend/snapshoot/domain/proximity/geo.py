"""Spherical geometry and the shared nearby-query abstraction."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Mapping, Optional, TypeVar

from snapshoot.domain.errors import ValidationFailed

EARTH_RADIUS_M = 6_371_000

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class GeoPoint:
	longitude: float
	latitude: float

	def __post_init__(self) -> None:
		if not -180.0 <= self.longitude <= 180.0:
			raise ValidationFailed("longitude_out_of_range", "Longitude must be within [-180, 180]")
		if not -90.0 <= self.latitude <= 90.0:
			raise ValidationFailed("latitude_out_of_range", "Latitude must be within [-90, 90]")

	def to_geojson(self) -> dict[str, Any]:
		return {"type": "Point", "coordinates": [self.longitude, self.latitude]}

	@classmethod
	def from_geojson(cls, payload: Mapping[str, Any]) -> "GeoPoint":
		if payload.get("type") != "Point":
			raise ValidationFailed("location_type_invalid", "Location type must be Point")
		coordinates = payload.get("coordinates") or ()
		if len(coordinates) != 2:
			raise ValidationFailed("location_coordinates_invalid", "Coordinates must be [longitude, latitude]")
		return cls(longitude=float(coordinates[0]), latitude=float(coordinates[1]))


def haversine(a: GeoPoint, b: GeoPoint) -> float:
	"""Return the great-circle distance between two points in meters."""
	phi1, phi2 = math.radians(a.latitude), math.radians(b.latitude)
	dphi = math.radians(b.latitude - a.latitude)
	dlambda = math.radians(b.longitude - a.longitude)
	h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
	return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def sql_distance(lat_param: str, lon_param: str, *, lat_col: str = "lat", lon_col: str = "lon") -> str:
	"""Haversine distance in meters as a SQL expression (acos form, clamped)."""
	return (
		f"(6371000 * acos(LEAST(1.0, GREATEST(-1.0, "
		f"cos(radians({lat_param})) * cos(radians({lat_col})) * cos(radians({lon_col}) - radians({lon_param})) + "
		f"sin(radians({lat_param})) * sin(radians({lat_col}))"
		f"))))"
	)


@dataclass(slots=True)
class NearQuery(Generic[T]):
	"""Entities with a location within ``max_distance_m`` of ``center``.

	``exclude_id`` drops one entity (the viewer), ``where`` is an auxiliary
	predicate (e.g. not expired) and ``limit`` caps the result. Results are
	distance-ascending; ``tie_break`` orders equal distances.
	"""

	center: GeoPoint
	max_distance_m: float
	limit: int = 50
	exclude_id: Optional[str] = None
	where: Optional[Callable[[T], bool]] = None
	tie_break: Optional[Callable[[T], Any]] = None

	def apply(
		self,
		items: Iterable[T],
		*,
		ident: Callable[[T], str],
		location: Callable[[T], Optional[GeoPoint]],
	) -> list[tuple[T, float]]:
		hits: list[tuple[T, float]] = []
		for item in items:
			if self.exclude_id is not None and ident(item) == self.exclude_id:
				continue
			point = location(item)
			if point is None:
				continue
			if self.where is not None and not self.where(item):
				continue
			distance = haversine(self.center, point)
			if distance <= self.max_distance_m:
				hits.append((item, distance))
		if self.tie_break is not None:
			tie_break = self.tie_break
			hits.sort(key=lambda hit: tie_break(hit[0]))
		hits.sort(key=lambda hit: hit[1])
		return hits[: max(0, self.limit)]
