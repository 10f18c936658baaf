"""Health probes and the Prometheus scrape endpoint."""

from __future__ import annotations

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from snapshoot.obs import health
from snapshoot.settings import settings

router = APIRouter(tags=["ops"])


def presented_token(x_admin_token: Optional[str], authorization: Optional[str]) -> Optional[str]:
	if x_admin_token:
		return x_admin_token
	scheme, _, value = (authorization or "").partition(" ")
	return value or None if scheme.lower() == "bearer" else None


async def require_metrics_access(
	x_admin_token: Optional[str] = Header(default=None, alias="X-Admin-Token"),
	authorization: Optional[str] = Header(default=None),
) -> None:
	if settings.obs_metrics_public:
		return
	expected = settings.obs_admin_token
	if not expected:
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="admin_token_not_configured")
	presented = presented_token(x_admin_token, authorization) or ""
	if not hmac.compare_digest(presented.encode(), expected.encode()):
		raise HTTPException(status.HTTP_403_FORBIDDEN, detail="forbidden")


@router.get("/health/live")
async def health_live() -> dict[str, str]:
	return await health.liveness()


@router.get("/health/ready")
async def health_ready() -> JSONResponse:
	code, payload = await health.readiness()
	return JSONResponse(payload, status_code=code)


@router.get("/metrics", dependencies=[Depends(require_metrics_access)])
async def scrape_metrics() -> Response:
	return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
