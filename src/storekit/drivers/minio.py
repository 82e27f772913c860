"""storekit MinIO driver.

Talks to self-hosted S3-compatible storage through the ``minio`` client.
Native S3Error codes are translated with error_from_code.
"""

from __future__ import annotations

import logging
from typing import Any

from minio import Minio
from minio.commonconfig import CopySource
from minio.error import MinioException, S3Error
from urllib3.exceptions import HTTPError

from storekit.config import DEFAULT_REGION, MINIO_DRIVER, MinioConfig
from storekit.errors import (
    BucketNotFoundError,
    ClientInitError,
    InvalidAccessKeyError,
    InvalidBucketNameError,
    InvalidEndpointError,
    InvalidFileError,
    InvalidObjectNameError,
    InvalidSecretKeyError,
    ObjectNotFoundError,
    ObjectStorageError,
    PreconditionFailedError,
    StorageBackendError,
    error_from_code,
)
from storekit.models import DEFAULT_CONTENT_TYPE, Bucket, ObjectMetadata, format_timestamp
from storekit.paths import split_path
from storekit.registry import DriverRegistry
from storekit.streams import StreamInput, get_stream_size
from storekit.tracing import traced_store_operation

logger = logging.getLogger(__name__)

# minio validates names client-side with ValueError; transport failures surface from urllib3
_NATIVE_ERRORS = (MinioException, ValueError, HTTPError)


def _translate(
    err: Exception,
    *,
    bucket: str | None = None,
    key: str | None = None,
    not_found: type[ObjectStorageError] = ObjectNotFoundError,
) -> ObjectStorageError:
    """Map a minio or urllib3 exception onto the storekit taxonomy."""
    if isinstance(err, S3Error):
        return error_from_code(err.code, err.message, bucket=bucket, key=key, not_found=not_found, cause=err)
    if isinstance(err, ValueError):
        if "bucket" in str(err).lower():
            return InvalidBucketNameError(str(err), bucket=bucket, key=key, cause=err)
        return InvalidObjectNameError(str(err), bucket=bucket, key=key, cause=err)
    return StorageBackendError(f"MinIO error: {err}", bucket=bucket, key=key, cause=err)


def _validate_config(config: MinioConfig) -> None:
    if not config.endpoint:
        raise InvalidEndpointError("MinIO endpoint is required")
    if not config.access_key.get_secret_value():
        raise InvalidAccessKeyError("MinIO access key is required")
    if not config.secret_key.get_secret_value():
        raise InvalidSecretKeyError("MinIO secret key is required")


def _etag(value: str | None) -> str:
    return (value or "").strip('"')


class MinioStore:
    """MinIO implementation of the Store protocol."""

    def __init__(self, config: MinioConfig, client: Any = None) -> None:
        """Initialize the MinIO store.

        Args:
            config: MinIO config. endpoint, access_key and secret_key are required.
            client: Pre-built Minio client (tests inject a mock here).

        Raises:
            InvalidEndpointError: If endpoint is empty.
            InvalidAccessKeyError: If access_key is empty.
            InvalidSecretKeyError: If secret_key is empty.
            ClientInitError: If the Minio client cannot be constructed.
        """
        _validate_config(config)

        if not config.use_ssl:
            logger.warning("MinIO endpoint %s is using insecure HTTP", config.endpoint)

        region = config.region
        if not region:
            logger.warning("No MinIO region configured, defaulting to %s", DEFAULT_REGION)
            region = DEFAULT_REGION

        self._config = config
        self._region = region
        self._bucket = ""

        if client is None:
            token = config.token.get_secret_value() if config.token else None
            try:
                client = Minio(
                    endpoint=config.endpoint,
                    access_key=config.access_key.get_secret_value(),
                    secret_key=config.secret_key.get_secret_value(),
                    session_token=token,
                    secure=config.use_ssl,
                    region=region,
                )
                if not config.use_path_style:
                    client.enable_virtual_style_endpoint()
            except (ValueError, TypeError, MinioException) as e:
                raise ClientInitError(f"Failed to create MinIO client: {e}", cause=e) from e

        self._client = client
        logger.info("MinioStore initialized: endpoint=%s secure=%s", config.endpoint, config.use_ssl)

    @property
    def driver_name(self) -> str:
        return MINIO_DRIVER

    @property
    def bucket(self) -> str:
        """Return the currently selected bucket ("" when unset)."""
        return self._bucket

    @property
    def region(self) -> str:
        return self._region

    def _resolve(self, name: str, bucket: str | None) -> tuple[str, str]:
        return split_path(self._bucket if bucket is None else bucket, name)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @traced_store_operation("setup")
    def setup(self) -> None:
        logger.debug("MinioStore setup called - no action needed")

    @traced_store_operation("health_check")
    def health_check(self) -> None:
        _validate_config(self._config)

    @traced_store_operation("clean_up")
    def clean_up(self) -> None:
        logger.debug("MinioStore clean_up called - no action needed")

    # ------------------------------------------------------------------
    # Session context
    # ------------------------------------------------------------------

    @traced_store_operation("set_bucket")
    def set_bucket(self, bucket_name: str) -> bool:
        """Select a bucket after checking that it exists.

        Raises:
            BucketNotFoundError: If the bucket does not exist.
        """
        if not bucket_name:
            logger.warning("Empty bucket name: clearing selection, full paths required for objects")
            self._bucket = ""
            return False

        try:
            found = self._client.bucket_exists(bucket_name=bucket_name)
        except _NATIVE_ERRORS as e:
            raise _translate(e, bucket=bucket_name, not_found=BucketNotFoundError) from e
        if not found:
            raise BucketNotFoundError(bucket=bucket_name)

        self._bucket = bucket_name
        return True

    def set_region(self, region: str) -> None:
        """Set the region used as the location for new buckets."""
        if not region:
            logger.warning("Empty region given, defaulting to %s", DEFAULT_REGION)
            region = DEFAULT_REGION
        self._region = region

    # ------------------------------------------------------------------
    # Buckets
    # ------------------------------------------------------------------

    @traced_store_operation("create_bucket")
    def create_bucket(self, bucket_name: str) -> None:
        if not bucket_name:
            raise InvalidBucketNameError("Bucket name is required")
        try:
            self._client.make_bucket(bucket_name=bucket_name, location=self._region)
        except _NATIVE_ERRORS as e:
            raise _translate(e, bucket=bucket_name, not_found=BucketNotFoundError) from e
        logger.info("Created bucket: %s", bucket_name)

    @traced_store_operation("delete_bucket")
    def delete_bucket(self, bucket_name: str) -> None:
        """Delete a bucket. A missing bucket is not an error."""
        if not bucket_name:
            raise InvalidBucketNameError("Bucket name is required")
        try:
            self._client.remove_bucket(bucket_name=bucket_name)
        except _NATIVE_ERRORS as e:
            err = _translate(e, bucket=bucket_name, not_found=BucketNotFoundError)
            if isinstance(err, BucketNotFoundError):
                logger.debug("Bucket already absent: %s", bucket_name)
                return
            raise err from e
        logger.info("Deleted bucket: %s", bucket_name)

    @traced_store_operation("list_buckets")
    def list_buckets(self) -> list[Bucket]:
        try:
            buckets = self._client.list_buckets()
        except _NATIVE_ERRORS as e:
            raise _translate(e) from e
        return [Bucket(name=b.name, creation_date=format_timestamp(b.creation_date)) for b in buckets]

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    @traced_store_operation("create_object")
    def create_object(
        self,
        name: str,
        data: StreamInput,
        content_type: str = DEFAULT_CONTENT_TYPE,
        *,
        bucket: str | None = None,
    ) -> None:
        """Upload an object, overwriting any existing one.

        Raises:
            PreconditionFailedError: If the stream size cannot be determined.
        """
        bucket_name, key = self._resolve(name, bucket)
        try:
            stream, size = get_stream_size(data)
        except InvalidFileError as e:
            raise PreconditionFailedError(
                "Stream size could not be determined", bucket=bucket_name, key=key, cause=e
            ) from e

        try:
            self._client.put_object(
                bucket_name=bucket_name,
                object_name=key,
                data=stream,
                length=size,
                content_type=content_type or DEFAULT_CONTENT_TYPE,
            )
        except _NATIVE_ERRORS as e:
            raise _translate(e, bucket=bucket_name, key=key) from e
        logger.debug("Stored object: bucket=%s key=%s size=%d", bucket_name, key, size)

    @traced_store_operation("read_object")
    def read_object(self, name: str, *, bucket: str | None = None) -> bytes | None:
        bucket_name, key = self._resolve(name, bucket)
        try:
            response = self._client.get_object(bucket_name=bucket_name, object_name=key)
        except _NATIVE_ERRORS as e:
            err = _translate(e, bucket=bucket_name, key=key)
            if isinstance(err, ObjectNotFoundError):
                return None
            raise err from e

        try:
            return response.read()
        except _NATIVE_ERRORS as e:
            raise _translate(e, bucket=bucket_name, key=key) from e
        finally:
            response.close()
            response.release_conn()

    @traced_store_operation("update_object")
    def update_object(self, name: str, data: StreamInput, *, bucket: str | None = None) -> None:
        found, meta = self.exists(name, bucket=bucket)
        if not found or meta is None:
            bucket_name, key = self._resolve(name, bucket)
            raise ObjectNotFoundError(bucket=bucket_name, key=key)
        self.create_object(name, data, meta.content_type, bucket=bucket)

    @traced_store_operation("delete_object")
    def delete_object(self, name: str, *, bucket: str | None = None) -> None:
        bucket_name, key = self._resolve(name, bucket)
        try:
            self._client.remove_object(bucket_name=bucket_name, object_name=key)
        except _NATIVE_ERRORS as e:
            raise _translate(e, bucket=bucket_name, key=key) from e
        logger.debug("Deleted object: bucket=%s key=%s", bucket_name, key)

    @traced_store_operation("list_objects")
    def list_objects(self, bucket_name: str = "") -> list[ObjectMetadata]:
        bucket_name = bucket_name or self._bucket
        if not bucket_name:
            raise InvalidBucketNameError("No bucket given and no bucket selected")

        objects: list[ObjectMetadata] = []
        try:
            for obj in self._client.list_objects(bucket_name=bucket_name, recursive=True):
                if obj.is_dir:
                    continue
                objects.append(
                    ObjectMetadata(
                        key=obj.object_name,
                        size=obj.size or 0,
                        content_type=obj.content_type or DEFAULT_CONTENT_TYPE,
                        etag=_etag(obj.etag),
                        last_modified=format_timestamp(obj.last_modified),
                    )
                )
        except _NATIVE_ERRORS as e:
            raise _translate(e, bucket=bucket_name, not_found=BucketNotFoundError) from e
        return objects

    @traced_store_operation("exists")
    def exists(self, name: str, *, bucket: str | None = None) -> tuple[bool, ObjectMetadata | None]:
        bucket_name, key = self._resolve(name, bucket)
        try:
            stat = self._client.stat_object(bucket_name=bucket_name, object_name=key)
        except _NATIVE_ERRORS as e:
            err = _translate(e, bucket=bucket_name, key=key)
            if isinstance(err, ObjectNotFoundError):
                return False, None
            raise err from e

        return True, ObjectMetadata(
            key=key,
            size=stat.size or 0,
            content_type=stat.content_type or DEFAULT_CONTENT_TYPE,
            etag=_etag(stat.etag),
            last_modified=format_timestamp(stat.last_modified),
        )

    @traced_store_operation("metadata")
    def metadata(self, name: str, *, bucket: str | None = None) -> ObjectMetadata:
        found, meta = self.exists(name, bucket=bucket)
        if not found or meta is None:
            bucket_name, key = self._resolve(name, bucket)
            raise ObjectNotFoundError(bucket=bucket_name, key=key)
        return meta

    @traced_store_operation("copy_object")
    def copy_object(self, src: str, dest: str, *, bucket: str | None = None) -> None:
        src_bucket, src_key = self._resolve(src, bucket)
        dest_bucket, dest_key = self._resolve(dest, bucket)
        try:
            self._client.copy_object(
                bucket_name=dest_bucket,
                object_name=dest_key,
                source=CopySource(src_bucket, src_key),
            )
        except _NATIVE_ERRORS as e:
            raise _translate(e, bucket=src_bucket, key=src_key) from e

    @traced_store_operation("move_object")
    def move_object(self, src: str, dest: str, *, bucket: str | None = None) -> None:
        # Same source and destination: nothing to move, but the source must exist
        if self._resolve(src, bucket) == self._resolve(dest, bucket):
            self.metadata(src, bucket=bucket)
            return
        self.copy_object(src, dest, bucket=bucket)
        try:
            self.delete_object(src, bucket=bucket)
        except ObjectStorageError:
            logger.warning("Move copied %s to %s but failed to delete the source", src, dest)
            raise


def _construct(config: object) -> MinioStore:
    """Registry constructor: validate config and build a MinioStore."""
    if not isinstance(config, MinioConfig):
        raise ClientInitError(f"Expected MinioConfig, got {type(config).__name__}")
    return MinioStore(config)


def register(registry: DriverRegistry) -> None:
    """Register the MinIO driver."""
    registry.register(MINIO_DRIVER, _construct)
