"""Error taxonomy shared by every snapshoot domain service."""

from __future__ import annotations

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - fallback for older Starlette builds
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class SnapshootError(Exception):
	"""Base class for typed domain failures.

	``reason`` is the stable machine-readable code surfaced to clients, while the
	exception message stays human readable.
	"""

	status_code: int = status.HTTP_400_BAD_REQUEST
	reason: str = "error"
	message: str = "Request failed"

	def __init__(self, reason: str | None = None, message: str | None = None) -> None:
		if reason:
			self.reason = reason
		if message:
			self.message = message
		super().__init__(self.message)


class NotFound(SnapshootError):
	"""Entity absent, or present but not visible to the caller."""

	status_code = status.HTTP_404_NOT_FOUND
	reason = "not_found"
	message = "Resource not found"


class Forbidden(SnapshootError):
	status_code = status.HTTP_403_FORBIDDEN
	reason = "forbidden"
	message = "You are not allowed to perform this action"


class SelfReference(SnapshootError):
	status_code = status.HTTP_409_CONFLICT
	reason = "self_reference"
	message = "This operation cannot target yourself"


class AlreadyExists(SnapshootError):
	status_code = status.HTTP_409_CONFLICT
	reason = "already_exists"
	message = "Resource already exists"


class ValidationFailed(SnapshootError):
	status_code = _HTTP_422
	reason = "validation_failed"
	message = "Request violates a domain rule"


class StorageFailure(SnapshootError):
	"""Persistence or media I/O failed; never reported as NotFound."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	reason = "storage_failure"
	message = "Storage backend failed"


class Unauthorized(SnapshootError):
	status_code = status.HTTP_401_UNAUTHORIZED
	reason = "invalid_credentials"
	message = "Invalid credential or password"
