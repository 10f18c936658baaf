"""Structured JSON logging with request-scoped context and field redaction."""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from snapshoot.settings import settings

_LOGGER_NAME = "snapshoot"
_CONTEXT_KEYS = ("request_id", "route", "user_id")
_EMPTY: Mapping[str, str] = MappingProxyType({})
_CONTEXT: ContextVar[Mapping[str, str]] = ContextVar("snapshoot_log_context", default=_EMPTY)

# substring match
_SECRET_MARKERS = ("token", "secret", "authorization", "password", "cookie")
# exact match; positions and addresses identify people
_PERSONAL_KEYS = frozenset({"email", "credential", "lat", "lon", "latitude", "longitude", "coordinates", "location"})

_MAX_STRING = 256
_MAX_ITEMS = 10

_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime", "taskName"}


def bind_context(**fields: Optional[str]) -> Token:
	"""Merge ``request_id``, ``route`` or ``user_id`` into the logging context."""
	current = dict(_CONTEXT.get())
	for key, value in fields.items():
		if key not in _CONTEXT_KEYS:
			raise ValueError(f"unknown log context key: {key}")
		if value is not None:
			current[key] = value
	return _CONTEXT.set(MappingProxyType(current))


def reset_context(token: Token) -> None:
	_CONTEXT.reset(token)


def current_request_id() -> Optional[str]:
	return _CONTEXT.get().get("request_id")


def _is_sensitive(key: str) -> bool:
	lowered = key.lower()
	return lowered in _PERSONAL_KEYS or any(marker in lowered for marker in _SECRET_MARKERS)


def scrub(key: str, value: Any) -> Any:
	"""Redact sensitive keys and bound the size of everything else."""
	if _is_sensitive(key):
		return "[redacted]"
	if value is None or isinstance(value, (bool, int, float)):
		return value
	if isinstance(value, str):
		return value if len(value) <= _MAX_STRING else value[:_MAX_STRING] + "..."
	if isinstance(value, Mapping):
		items = list(value.items())
		out = {str(k): scrub(str(k), v) for k, v in items[:_MAX_ITEMS]}
		if len(items) > _MAX_ITEMS:
			out["..."] = f"+{len(items) - _MAX_ITEMS} keys"
		return out
	if isinstance(value, (list, tuple, set, frozenset)):
		seq = list(value)
		out_list = [scrub("", item) for item in seq[:_MAX_ITEMS]]
		if len(seq) > _MAX_ITEMS:
			out_list.append(f"+{len(seq) - _MAX_ITEMS} items")
		return out_list
	return str(value)


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per record: service identity, request context, then ``extra`` fields."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		payload.update(_CONTEXT.get())
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in record.__dict__.items():
			if key in _RECORD_ATTRS or key.startswith("_"):
				continue
			payload[key] = scrub(key, value)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Keep a random share of INFO records; other levels always pass."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = settings.obs_log_sampling_rate_info
		return rate >= 1.0 or random.random() < max(0.0, rate)


def configure_logging() -> logging.Logger:
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root = logging.getLogger()
	root.handlers[:] = [handler]
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _LOGGER_NAME)
