"""Media object storage.

Three interchangeable backends share the ``MediaStore`` protocol: S3 (MinIO
compatible, via boto3 executed off the event loop), a local directory for
development, and an in-process store used by tests.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Protocol

import boto3
import ulid
from botocore.exceptions import BotoCoreError, ClientError

from snapshoot.domain.errors import StorageFailure, ValidationFailed
from snapshoot.obs import metrics as obs_metrics
from snapshoot.settings import settings

logger = logging.getLogger(__name__)

MEDIA_IMAGE = "Image"
MEDIA_VIDEO = "Video"

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}
ALLOWED_VIDEO_TYPES = {"video/mp4", "video/webm", "video/ogg", "video/avi", "video/quicktime"}
MAX_IMAGE_BYTES = 5 * 1024 * 1024
MAX_VIDEO_BYTES = 10 * 1024 * 1024

_EXTENSIONS = {
	"image/jpeg": "jpg",
	"image/png": "png",
	"image/gif": "gif",
	"image/webp": "webp",
	"video/mp4": "mp4",
	"video/webm": "webm",
	"video/ogg": "ogv",
	"video/avi": "avi",
	"video/quicktime": "mov",
}


@dataclass(slots=True)
class StoredMedia:
	kind: str
	url: str
	key: str


def _normalise_type(content_type: Optional[str]) -> str:
	return (content_type or "").split(";", 1)[0].strip().lower()


def validate(content_type: Optional[str], size: int) -> str:
	"""Check the allow-list and size caps; return the media kind."""
	mime = _normalise_type(content_type)
	if mime in ALLOWED_IMAGE_TYPES:
		kind, cap = MEDIA_IMAGE, MAX_IMAGE_BYTES
	elif mime in ALLOWED_VIDEO_TYPES:
		kind, cap = MEDIA_VIDEO, MAX_VIDEO_BYTES
	else:
		raise ValidationFailed("media_type_invalid", f"Unsupported media type: {mime or 'unknown'}")
	if size <= 0:
		raise ValidationFailed("media_empty", "Media payload is empty")
	if size > cap:
		raise ValidationFailed("media_too_large", f"{kind} exceeds {cap // (1024 * 1024)} MB")
	return kind


def build_key(content_type: str) -> str:
	return f"{ulid.new()}.{_EXTENSIONS.get(_normalise_type(content_type), 'bin')}"


class MediaStore(Protocol):
	async def put(self, data: bytes, content_type: str) -> StoredMedia: ...

	async def delete(self, url: str) -> None: ...


class S3MediaStore:
	def __init__(
		self,
		*,
		bucket: str,
		endpoint_url: Optional[str],
		access_key: Optional[str],
		secret_key: Optional[str],
		region: str,
		public_base_url: Optional[str] = None,
		client=None,
	) -> None:
		self._bucket = bucket
		self._client = client or boto3.client(
			"s3",
			endpoint_url=endpoint_url,
			aws_access_key_id=access_key,
			aws_secret_access_key=secret_key,
			region_name=region,
		)
		base = public_base_url or f"{(endpoint_url or '').rstrip('/')}/{bucket}"
		self._base_url = base.rstrip("/")

	def url_for(self, key: str) -> str:
		return f"{self._base_url}/{key}"

	def key_for(self, url: str) -> str:
		prefix = f"{self._base_url}/"
		if url.startswith(prefix):
			return url[len(prefix):]
		return url.rsplit("/", 1)[-1]

	async def put(self, data: bytes, content_type: str) -> StoredMedia:
		kind = validate(content_type, len(data))
		key = build_key(content_type)
		try:
			await asyncio.to_thread(
				self._client.put_object,
				Bucket=self._bucket,
				Key=key,
				Body=data,
				ContentType=_normalise_type(content_type),
			)
		except (BotoCoreError, ClientError) as exc:
			obs_metrics.inc_media_op("put", "error")
			logger.error("media_put_failed", extra={"key": key, "error": str(exc)})
			raise StorageFailure("media_put_failed", "Failed to store media") from exc
		obs_metrics.inc_media_op("put", "ok")
		return StoredMedia(kind=kind, url=self.url_for(key), key=key)

	async def delete(self, url: str) -> None:
		key = self.key_for(url)
		try:
			await asyncio.to_thread(self._client.delete_object, Bucket=self._bucket, Key=key)
		except (BotoCoreError, ClientError) as exc:
			obs_metrics.inc_media_op("delete", "error")
			raise StorageFailure("media_delete_failed", "Failed to release media") from exc
		obs_metrics.inc_media_op("delete", "ok")


class LocalMediaStore:
	"""Files on disk, served by the app under ``/uploads``."""

	def __init__(self, root: str | Path, *, public_base_url: Optional[str] = None) -> None:
		self._root = Path(root)
		self._base_url = (public_base_url or "/uploads").rstrip("/")

	def _path_for(self, url: str) -> Path:
		return self._root / url.rsplit("/", 1)[-1]

	async def put(self, data: bytes, content_type: str) -> StoredMedia:
		kind = validate(content_type, len(data))
		key = build_key(content_type)
		try:
			self._root.mkdir(parents=True, exist_ok=True)
			await asyncio.to_thread((self._root / key).write_bytes, data)
		except OSError as exc:
			obs_metrics.inc_media_op("put", "error")
			raise StorageFailure("media_put_failed", "Failed to store media") from exc
		obs_metrics.inc_media_op("put", "ok")
		return StoredMedia(kind=kind, url=f"{self._base_url}/{key}", key=key)

	async def delete(self, url: str) -> None:
		try:
			await asyncio.to_thread(self._path_for(url).unlink)
		except OSError as exc:
			obs_metrics.inc_media_op("delete", "error")
			raise StorageFailure("media_delete_failed", "Failed to release media") from exc
		obs_metrics.inc_media_op("delete", "ok")


@dataclass
class MemoryMediaStore:
	objects: Dict[str, bytes] = field(default_factory=dict)
	released: list[str] = field(default_factory=list)
	fail_deletes: bool = False

	async def put(self, data: bytes, content_type: str) -> StoredMedia:
		kind = validate(content_type, len(data))
		key = build_key(content_type)
		url = f"memory://{key}"
		self.objects[url] = data
		return StoredMedia(kind=kind, url=url, key=key)

	async def delete(self, url: str) -> None:
		if self.fail_deletes or url not in self.objects:
			raise StorageFailure("media_delete_failed", "Failed to release media")
		del self.objects[url]
		self.released.append(url)


def build_media_store() -> MediaStore:
	backend = settings.media_backend
	if backend == "memory":
		return MemoryMediaStore()
	if backend == "local":
		return LocalMediaStore(settings.media_local_dir, public_base_url=settings.media_public_base_url)
	return S3MediaStore(
		bucket=settings.media_bucket,
		endpoint_url=settings.s3_endpoint_url,
		access_key=settings.s3_access_key,
		secret_key=settings.s3_secret_key,
		region=settings.s3_region,
		public_base_url=settings.media_public_base_url,
	)


_MEDIA_STORE: Optional[MediaStore] = None


def get_media_store() -> MediaStore:
	global _MEDIA_STORE
	if _MEDIA_STORE is None:
		_MEDIA_STORE = build_media_store()
	return _MEDIA_STORE


def set_media_store(store: Optional[MediaStore]) -> None:
	global _MEDIA_STORE
	_MEDIA_STORE = store
