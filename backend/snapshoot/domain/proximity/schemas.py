"""Pydantic schemas for location updates and nearby queries."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class LocationUpdateRequest(BaseModel):
	type: Literal["Point"] = "Point"
	coordinates: list[float] = Field(..., min_length=2, max_length=2)


class NearbyQuery(BaseModel):
	longitude: float = Field(..., ge=-180.0, le=180.0)
	latitude: float = Field(..., ge=-90.0, le=90.0)
	radius: Optional[float] = Field(default=None, gt=0, le=100_000)
	limit: Optional[int] = Field(default=None, ge=1, le=50)


class NearbyUser(BaseModel):
	id: str
	username: str
	avatar: Optional[str] = None
	distance_m: float
