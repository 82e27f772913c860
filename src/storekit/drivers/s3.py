"""storekit S3 driver.

Talks to AWS S3 through boto3. An endpoint override points the client at any
S3-compatible service; the configured region is still used for signing.

Registered under "s3" and the "aws" alias.
"""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from storekit.config import AWS_DRIVER_ALIAS, DEFAULT_REGION, S3_DRIVER, S3Config
from storekit.errors import (
    BucketNotFoundError,
    ClientInitError,
    InvalidAccessKeyError,
    InvalidBucketNameError,
    InvalidFileError,
    InvalidSecretKeyError,
    ObjectNotFoundError,
    ObjectStorageError,
    PreconditionFailedError,
    StorageBackendError,
    error_from_code,
)
from storekit.models import DEFAULT_CONTENT_TYPE, Bucket, ObjectMetadata, format_timestamp
from storekit.paths import scheme, split_path
from storekit.registry import DriverRegistry
from storekit.streams import StreamInput, get_stream_size
from storekit.tracing import traced_store_operation

logger = logging.getLogger(__name__)


def _translate(
    err: Exception,
    *,
    bucket: str | None = None,
    key: str | None = None,
    not_found: type[ObjectStorageError] = ObjectNotFoundError,
) -> ObjectStorageError:
    """Map a botocore exception onto the storekit taxonomy."""
    if isinstance(err, ClientError):
        error = err.response.get("Error", {})
        code = str(error.get("Code", ""))
        message = error.get("Message") or str(err)
        return error_from_code(code, message, bucket=bucket, key=key, not_found=not_found, cause=err)
    return StorageBackendError(f"S3 error: {err}", bucket=bucket, key=key, cause=err)


def _etag(value: str | None) -> str:
    return (value or "").strip('"')


def _build_client(config: S3Config) -> Any:
    """Create a boto3 S3 client for config."""
    kwargs: dict[str, Any] = {
        "region_name": config.region or DEFAULT_REGION,
        "aws_access_key_id": config.access_key.get_secret_value(),
        "aws_secret_access_key": config.secret_key.get_secret_value(),
        "config": Config(s3={"addressing_style": "path" if config.use_path_style else "auto"}),
    }
    if config.token:
        kwargs["aws_session_token"] = config.token.get_secret_value()
    if config.endpoint:
        kwargs["endpoint_url"] = f"{scheme(config.use_ssl)}://{config.endpoint}"
        kwargs["use_ssl"] = config.use_ssl

    session = boto3.session.Session()
    return session.client("s3", **kwargs)


class S3Store:
    """AWS S3 implementation of the Store protocol."""

    def __init__(self, config: S3Config, client: Any = None) -> None:
        """Initialize the S3 store.

        Args:
            config: S3 config. access_key and secret_key are required.
            client: Pre-built boto3 S3 client (tests inject a mock here).

        Raises:
            InvalidAccessKeyError: If access_key is empty.
            InvalidSecretKeyError: If secret_key is empty.
            ClientInitError: If the boto3 client cannot be constructed.
        """
        if not config.access_key.get_secret_value():
            raise InvalidAccessKeyError("S3 access key is required")
        if not config.secret_key.get_secret_value():
            raise InvalidSecretKeyError("S3 secret key is required")

        if config.endpoint and not config.use_ssl:
            logger.warning("S3 endpoint %s is using insecure HTTP", config.endpoint)

        region = config.region
        if not region:
            logger.warning("No S3 region configured, defaulting to %s", DEFAULT_REGION)
            region = DEFAULT_REGION

        if client is None:
            try:
                client = _build_client(config)
            except (BotoCoreError, ValueError) as e:
                raise ClientInitError(f"Failed to create S3 client: {e}", cause=e) from e

        self._config = config
        self._client = client
        self._region = region
        self._bucket = config.bucket
        logger.info(
            "S3Store initialized: region=%s endpoint=%s",
            region,
            config.endpoint or "default",
        )

    @property
    def driver_name(self) -> str:
        return self._config.driver_name()

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
        logger.debug("S3Store setup called - no action needed")

    @traced_store_operation("health_check")
    def health_check(self) -> None:
        """Check that the credentials can list buckets.

        Raises:
            ClientInitError: If the service cannot be reached or rejects the call.
        """
        try:
            self._client.list_buckets()
        except (ClientError, BotoCoreError) as e:
            raise ClientInitError(f"S3 health check failed: {e}", cause=e) from e

    @traced_store_operation("clean_up")
    def clean_up(self) -> None:
        logger.debug("S3Store clean_up called - no action needed")

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
            self._client.head_bucket(Bucket=bucket_name)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, bucket=bucket_name, not_found=BucketNotFoundError) from e

        self._bucket = bucket_name
        return True

    def set_region(self, region: str) -> None:
        """Set the region used as the location constraint for new buckets."""
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

        kwargs: dict[str, Any] = {"Bucket": bucket_name}
        # us-east-1 rejects an explicit location constraint
        if self._region != DEFAULT_REGION:
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self._region}

        try:
            self._client.create_bucket(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, bucket=bucket_name, not_found=BucketNotFoundError) from e
        logger.info("Created bucket: %s", bucket_name)

    @traced_store_operation("delete_bucket")
    def delete_bucket(self, bucket_name: str) -> None:
        """Delete a bucket. A missing bucket is not an error."""
        if not bucket_name:
            raise InvalidBucketNameError("Bucket name is required")
        try:
            self._client.delete_bucket(Bucket=bucket_name)
        except (ClientError, BotoCoreError) as e:
            err = _translate(e, bucket=bucket_name, not_found=BucketNotFoundError)
            if isinstance(err, BucketNotFoundError):
                logger.debug("Bucket already absent: %s", bucket_name)
                return
            raise err from e
        logger.info("Deleted bucket: %s", bucket_name)

    @traced_store_operation("list_buckets")
    def list_buckets(self) -> list[Bucket]:
        try:
            response = self._client.list_buckets()
        except (ClientError, BotoCoreError) as e:
            raise _translate(e) from e
        return [
            Bucket(name=b["Name"], creation_date=format_timestamp(b.get("CreationDate")))
            for b in response.get("Buckets", [])
        ]

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
                Bucket=bucket_name,
                Key=key,
                Body=stream,
                ContentLength=size,
                ContentType=content_type or DEFAULT_CONTENT_TYPE,
            )
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, bucket=bucket_name, key=key) from e
        logger.debug("Stored object: bucket=%s key=%s size=%d", bucket_name, key, size)

    @traced_store_operation("read_object")
    def read_object(self, name: str, *, bucket: str | None = None) -> bytes | None:
        bucket_name, key = self._resolve(name, bucket)
        try:
            response = self._client.get_object(Bucket=bucket_name, Key=key)
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except (ClientError, BotoCoreError) as e:
            err = _translate(e, bucket=bucket_name, key=key)
            if isinstance(err, ObjectNotFoundError):
                return None
            raise err from e

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
            self._client.delete_object(Bucket=bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, bucket=bucket_name, key=key) from e
        logger.debug("Deleted object: bucket=%s key=%s", bucket_name, key)

    @traced_store_operation("list_objects")
    def list_objects(self, bucket_name: str = "") -> list[ObjectMetadata]:
        """List every object in a bucket.

        S3 listings carry no content type, so each entry reports the
        default application/octet-stream.
        """
        bucket_name = bucket_name or self._bucket
        if not bucket_name:
            raise InvalidBucketNameError("No bucket given and no bucket selected")

        objects: list[ObjectMetadata] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket_name):
                for item in page.get("Contents", []):
                    objects.append(
                        ObjectMetadata(
                            key=item["Key"],
                            size=item.get("Size", 0),
                            content_type=DEFAULT_CONTENT_TYPE,
                            etag=_etag(item.get("ETag")),
                            last_modified=format_timestamp(item.get("LastModified")),
                        )
                    )
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, bucket=bucket_name, not_found=BucketNotFoundError) from e
        return objects

    @traced_store_operation("exists")
    def exists(self, name: str, *, bucket: str | None = None) -> tuple[bool, ObjectMetadata | None]:
        bucket_name, key = self._resolve(name, bucket)
        try:
            head = self._client.head_object(Bucket=bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            err = _translate(e, bucket=bucket_name, key=key)
            if isinstance(err, ObjectNotFoundError):
                return False, None
            raise err from e

        return True, ObjectMetadata(
            key=key,
            size=head.get("ContentLength", 0),
            content_type=head.get("ContentType") or DEFAULT_CONTENT_TYPE,
            etag=_etag(head.get("ETag")),
            last_modified=format_timestamp(head.get("LastModified")),
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
                Bucket=dest_bucket,
                Key=dest_key,
                CopySource={"Bucket": src_bucket, "Key": src_key},
            )
        except (ClientError, BotoCoreError) as e:
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


def _construct(config: object) -> S3Store:
    """Registry constructor: build an S3Store and check it can list buckets."""
    if not isinstance(config, S3Config):
        raise ClientInitError(f"Expected S3Config, got {type(config).__name__}")
    store = S3Store(config)
    store.health_check()
    return store


def register(registry: DriverRegistry) -> None:
    """Register the S3 driver under its name and the "aws" alias."""
    registry.register(S3_DRIVER, _construct)
    registry.register(AWS_DRIVER_ALIAS, _construct)
