"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles

from snapshoot.api import auth, chat, groups, ops, proximity, social, stories, users
from snapshoot.api.errors import install_error_handlers
from snapshoot.api.middleware_request_id import RequestIdMiddleware
from snapshoot.infra import postgres
from snapshoot.obs import init as obs_init
from snapshoot.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	if settings.store_backend == "postgres":
		await postgres.init_pool()
	logger.info("snapshoot_started", extra={"store_backend": settings.store_backend, "media_backend": settings.media_backend})
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Snapshoot API", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
# Starlette disallows wildcard '*' with allow_credentials=True.
if "*" in allow_origins:
	allow_origins = ["http://localhost:8100", "capacitor://localhost"] if settings.is_dev() else []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

obs_init(app)
app.add_middleware(RequestIdMiddleware)

if settings.media_backend == "local" and not settings.media_public_base_url:
	upload_root = Path(settings.media_local_dir).resolve()
	upload_root.mkdir(parents=True, exist_ok=True)
	app.mount("/uploads", StaticFiles(directory=str(upload_root)), name="uploads")

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(social.router)
app.include_router(groups.router)
app.include_router(chat.router)
app.include_router(stories.router)
app.include_router(proximity.router)
app.include_router(ops.router)
