"""Per-request metrics and access logging."""

from __future__ import annotations

import time
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from snapshoot.obs import logging as obs_logging
from snapshoot.obs import metrics
from snapshoot.settings import settings

_access_log = obs_logging.get_logger("snapshoot.http")


def route_label(request: Request) -> str:
	"""Path template of the matched route, so ``/stories/{story_id}`` is one series."""
	route = request.scope.get("route")
	template = getattr(route, "path", None)
	return template or request.url.path


class ObservabilityMiddleware(BaseHTTPMiddleware):
	def __init__(self, app, *, enabled: bool = True) -> None:
		super().__init__(app)
		self._enabled = enabled

	async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
		if not (self._enabled and settings.obs_enabled):
			return await call_next(request)

		request_id = getattr(request.state, "request_id", None) or request.headers.get("X-Request-Id") or str(uuid4())
		request.state.request_id = request_id
		context = obs_logging.bind_context(request_id=request_id, route=request.url.path)
		started = time.perf_counter()
		status = 500
		try:
			response = await call_next(request)
			status = response.status_code
		except Exception:
			_access_log.exception("http_request_error", extra={"method": request.method})
			raise
		finally:
			elapsed = time.perf_counter() - started
			label = route_label(request)
			metrics.observe_request(label, request.method, status, elapsed)
			_access_log.info(
				"http_request",
				extra={"method": request.method, "route": label, "status": status, "latency_ms": round(elapsed * 1000, 3)},
			)
			obs_logging.reset_context(context)

		response.headers.setdefault("X-Request-Id", request_id)
		return response


def install(app, *, enabled: bool = True) -> None:
	app.add_middleware(ObservabilityMiddleware, enabled=enabled)
