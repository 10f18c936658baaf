"""Registration and login endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from snapshoot.domain.identity import schemas
from snapshoot.domain.identity.service import IdentityService, get_identity_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
	payload: schemas.RegisterRequest,
	service: IdentityService = Depends(get_identity_service),
) -> schemas.AuthResponse:
	return await service.register(payload)


@router.post("/login", response_model=schemas.AuthResponse)
async def login(
	payload: schemas.LoginRequest,
	service: IdentityService = Depends(get_identity_service),
) -> schemas.AuthResponse:
	return await service.login(payload)
