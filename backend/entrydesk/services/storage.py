from __future__ import annotations
import io
from datetime import timedelta
from functools import lru_cache
from minio import Minio
from minio.deleteobjects import DeleteObject
from minio.error import S3Error
from urllib3.exceptions import HTTPError
import structlog
from entrydesk.config import settings

log = structlog.get_logger()


class StorageError(Exception):
    pass


def _parse_endpoint(ep: str) -> tuple[str, bool]:
    # Return (host:port, secure)
    secure = ep.startswith("https://")
    host = ep.replace("http://", "").replace("https://", "")
    return host, secure


class Storage:
    """Blob store for entry uploads: upload, signed_url and remove are all the rest of the app uses."""

    def __init__(self, endpoint: str, access_key: str, secret_key: str, bucket: str):
        self.bucket = bucket
        self._endpoint = endpoint
        self._access_key = access_key
        self._secret_key = secret_key
        self._client: Minio | None = None

    @property
    def client(self) -> Minio:
        if self._client is None:
            host, secure = _parse_endpoint(self._endpoint)
            client = Minio(host, access_key=self._access_key, secret_key=self._secret_key, secure=secure)
            try:
                if not client.bucket_exists(self.bucket):
                    client.make_bucket(self.bucket)
            except HTTPError as e:
                raise StorageError(f"Storage unreachable: {e}") from e
            except S3Error as e:
                # another worker may have created it first
                if e.code not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                    raise StorageError(str(e)) from e
            self._client = client
        return self._client

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        try:
            self.client.put_object(self.bucket, path, io.BytesIO(data), length=len(data), content_type=content_type)
        except (S3Error, HTTPError) as e:
            raise StorageError(f"Upload failed for {path}: {e}") from e
        return path

    def signed_url(self, path: str, ttl_seconds: int | None = None) -> str | None:
        ttl = ttl_seconds or settings.signed_url_ttl_seconds
        try:
            return self.client.presigned_get_object(self.bucket, path, expires=timedelta(seconds=ttl))
        except (S3Error, HTTPError, StorageError) as e:
            log.warning("signed_url_failed", path=path, error=str(e))
            return None

    def remove(self, paths: list[str]) -> None:
        if not paths:
            return
        try:
            errors = list(self.client.remove_objects(self.bucket, [DeleteObject(p) for p in paths]))
        except (S3Error, HTTPError) as e:
            raise StorageError(f"Remove failed: {e}") from e
        if errors:
            raise StorageError(f"Remove failed for {len(errors)} object(s): " + ", ".join(err.name for err in errors))


@lru_cache
def get_storage() -> Storage:
    return Storage(settings.s3_endpoint, settings.s3_access_key, settings.s3_secret_key, settings.s3_bucket_uploads)
