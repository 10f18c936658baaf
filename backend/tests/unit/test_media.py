import pytest
from botocore.exceptions import ClientError

from snapshoot.domain.errors import StorageFailure, ValidationFailed
from snapshoot.infra import media


@pytest.mark.parametrize(
    "content_type,kind",
    [("image/jpeg", media.MEDIA_IMAGE), ("IMAGE/PNG; charset=binary", media.MEDIA_IMAGE), ("video/mp4", media.MEDIA_VIDEO)],
)
def test_validate_accepts_allowed_types(content_type, kind):
    assert media.validate(content_type, 10) == kind


def test_validate_rejects_unknown_type_and_bad_sizes():
    with pytest.raises(ValidationFailed):
        media.validate("application/pdf", 10)
    with pytest.raises(ValidationFailed):
        media.validate(None, 10)
    with pytest.raises(ValidationFailed):
        media.validate("image/png", 0)
    with pytest.raises(ValidationFailed):
        media.validate("image/png", media.MAX_IMAGE_BYTES + 1)
    assert media.validate("video/webm", media.MAX_IMAGE_BYTES + 1) == media.MEDIA_VIDEO
    with pytest.raises(ValidationFailed):
        media.validate("video/webm", media.MAX_VIDEO_BYTES + 1)


def test_build_key_uses_extension():
    assert media.build_key("video/quicktime").endswith(".mov")
    assert media.build_key("image/unknown").endswith(".bin")


@pytest.mark.asyncio
async def test_local_store_round_trip(tmp_path):
    store = media.LocalMediaStore(tmp_path, public_base_url="http://cdn.test/media")
    stored = await store.put(b"GIF89a", "image/gif")
    assert stored.url.startswith("http://cdn.test/media/")
    assert (tmp_path / stored.key).read_bytes() == b"GIF89a"

    await store.delete(stored.url)
    assert not (tmp_path / stored.key).exists()
    with pytest.raises(StorageFailure):
        await store.delete(stored.url)


class BrokenS3Client:
    def put_object(self, **_kwargs):
        raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "PutObject")

    def delete_object(self, **_kwargs):
        raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "DeleteObject")


@pytest.mark.asyncio
async def test_s3_errors_become_storage_failures():
    store = media.S3MediaStore(
        bucket="bucket",
        endpoint_url="http://minio:9000",
        access_key=None,
        secret_key=None,
        region="us-east-1",
        client=BrokenS3Client(),
    )
    assert store.key_for(store.url_for("abc.png")) == "abc.png"
    with pytest.raises(StorageFailure):
        await store.put(b"\x89PNG", "image/png")
    with pytest.raises(StorageFailure):
        await store.delete("http://minio:9000/bucket/abc.png")
