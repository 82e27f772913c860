"""storekit filesystem driver.

Buckets are directories directly under the base path and object keys are
relative file paths beneath them:

    {base_path}/{bucket}/{key}

Directories are created on demand. Writes go to a temporary file in the
target directory and are moved into place, so readers never observe a
partially written object.
"""

from __future__ import annotations

import logging
import mimetypes
import os
import shutil
import uuid
from pathlib import Path

from storekit.config import FILESYSTEM_DRIVER, FilesystemConfig
from storekit.errors import (
    AccessDeniedError,
    BucketAlreadyExistsError,
    BucketNotFoundError,
    ClientInitError,
    InvalidBucketNameError,
    InvalidEndpointError,
    InvalidObjectNameError,
    ObjectNotFoundError,
    ObjectStorageError,
    StorageBackendError,
)
from storekit.models import DEFAULT_CONTENT_TYPE, Bucket, ObjectMetadata, format_timestamp
from storekit.paths import split_path
from storekit.registry import DriverRegistry
from storekit.streams import StreamInput, as_stream
from storekit.tracing import traced_store_operation

logger = logging.getLogger(__name__)

DIR_MODE = 0o755
_TMP_SUFFIX = ".storekit.tmp"


def _is_unsafe_key(key: str) -> bool:
    """Check if a key could escape its bucket directory.

    Detects null bytes, backslashes, absolute paths and Windows drive letters.
    Empty, "." and ".." segments are rejected too, so each key maps to
    exactly one file.
    """
    if "\x00" in key or "\\" in key:
        return True
    if key.startswith("/"):
        return True
    if len(key) >= 2 and key[1] == ":":
        return True
    return any(segment in ("", ".", "..") for segment in key.split("/"))


def _validate_bucket_name(bucket: str) -> None:
    if not bucket or bucket in (".", "..") or "/" in bucket or "\\" in bucket or "\x00" in bucket:
        raise InvalidBucketNameError(f"Invalid bucket name: {bucket!r}", bucket=bucket or None)


def _guess_content_type(key: str) -> str:
    content_type, _ = mimetypes.guess_type(key)
    return content_type or DEFAULT_CONTENT_TYPE


def _translate_os_error(err: OSError, *, bucket: str | None = None, key: str | None = None) -> ObjectStorageError:
    """Map an OSError onto the storekit taxonomy."""
    if isinstance(err, FileNotFoundError):
        return ObjectNotFoundError(bucket=bucket, key=key, cause=err)
    if isinstance(err, PermissionError):
        return AccessDeniedError(bucket=bucket, key=key, cause=err)
    if isinstance(err, IsADirectoryError):
        return InvalidObjectNameError("Object name refers to a directory", bucket=bucket, key=key, cause=err)
    return StorageBackendError(f"Filesystem error: {err}", bucket=bucket, key=key, cause=err)


class FilesystemStore:
    """Local filesystem implementation of the Store protocol."""

    def __init__(self, config: FilesystemConfig) -> None:
        """Initialize filesystem storage.

        Args:
            config: Filesystem config. base_path must be non-empty.

        Raises:
            InvalidEndpointError: If base_path is empty.
        """
        if not config.base_path:
            raise InvalidEndpointError("Filesystem base path is required")

        self._base_dir = Path(config.base_path)
        self._bucket = ""
        logger.info("FilesystemStore initialized with base_dir=%s", self._base_dir)

    @property
    def driver_name(self) -> str:
        return FILESYSTEM_DRIVER

    @property
    def base_dir(self) -> Path:
        """Return the base directory path."""
        return self._base_dir

    @property
    def bucket(self) -> str:
        """Return the currently selected bucket ("" when unset)."""
        return self._bucket

    # ------------------------------------------------------------------
    # Path helpers
    # ------------------------------------------------------------------

    def _bucket_dir(self, bucket: str) -> Path:
        _validate_bucket_name(bucket)
        return self._base_dir / bucket

    def _resolve(self, name: str, bucket: str | None) -> tuple[str, str, Path]:
        """Resolve an object name to (bucket, key, absolute file path)."""
        bucket_name, key = split_path(self._bucket if bucket is None else bucket, name)
        if _is_unsafe_key(key):
            raise InvalidObjectNameError(
                "Invalid object name: path traversal or unsafe characters detected",
                bucket=bucket_name,
                key=key,
            )
        bucket_dir = self._bucket_dir(bucket_name)
        path = bucket_dir / key

        resolved = path.resolve()
        try:
            resolved.relative_to(bucket_dir.resolve())
        except ValueError as e:
            raise InvalidObjectNameError(
                "Object path resolves outside its bucket",
                bucket=bucket_name,
                key=key,
            ) from e
        return bucket_name, key, path

    def _write_atomic(self, path: Path, data: StreamInput, *, bucket: str, key: str) -> None:
        """Write a stream to path through a temporary sibling file."""
        stream = as_stream(data)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}{_TMP_SUFFIX}")
        try:
            path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            with tmp_path.open("wb") as out:
                shutil.copyfileobj(stream, out)
            tmp_path.replace(path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise _translate_os_error(e, bucket=bucket, key=key) from e
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def _prune_empty_dirs(self, start: Path, stop: Path) -> None:
        """Remove empty directories from start up to (not including) stop."""
        current = start
        while current != stop and stop in current.parents:
            try:
                current.rmdir()
            except OSError:
                return
            current = current.parent

    def _stat_metadata(self, path: Path, key: str) -> ObjectMetadata:
        st = path.stat()
        return ObjectMetadata(
            key=key,
            size=st.st_size,
            content_type=_guess_content_type(key),
            etag="",
            last_modified=format_timestamp(st.st_mtime),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @traced_store_operation("setup")
    def setup(self) -> None:
        try:
            self._base_dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise _translate_os_error(e) from e

    @traced_store_operation("health_check")
    def health_check(self) -> None:
        """Check that the base path exists as a writable directory or can be created."""
        if not str(self._base_dir):
            raise InvalidEndpointError("Filesystem base path is required")

        candidate = self._base_dir
        while not candidate.exists():
            if candidate.parent == candidate:
                break
            candidate = candidate.parent

        if candidate == self._base_dir and not candidate.is_dir():
            raise InvalidEndpointError(f"Base path is not a directory: {self._base_dir}")
        if not os.access(candidate, os.W_OK):
            raise AccessDeniedError(f"Base path is not writable: {self._base_dir}")

    @traced_store_operation("clean_up")
    def clean_up(self) -> None:
        logger.debug("FilesystemStore clean_up called - no action needed")

    # ------------------------------------------------------------------
    # Session context
    # ------------------------------------------------------------------

    @traced_store_operation("set_bucket")
    def set_bucket(self, bucket_name: str) -> bool:
        """Select a bucket, creating its directory if needed."""
        if not bucket_name:
            logger.warning("Empty bucket name: clearing selection, full paths required for objects")
            self._bucket = ""
            return False

        bucket_dir = self._bucket_dir(bucket_name)
        try:
            bucket_dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        except OSError as e:
            raise _translate_os_error(e, bucket=bucket_name) from e
        self._bucket = bucket_name
        return True

    def set_region(self, region: str) -> None:
        # Not applicable for the filesystem
        return None

    # ------------------------------------------------------------------
    # Buckets
    # ------------------------------------------------------------------

    @traced_store_operation("create_bucket")
    def create_bucket(self, bucket_name: str) -> None:
        bucket_dir = self._bucket_dir(bucket_name)
        try:
            bucket_dir.mkdir(mode=DIR_MODE, parents=True, exist_ok=False)
        except FileExistsError as e:
            raise BucketAlreadyExistsError(bucket=bucket_name, cause=e) from e
        except OSError as e:
            raise _translate_os_error(e, bucket=bucket_name) from e
        logger.info("Created bucket directory: %s", bucket_name)

    @traced_store_operation("delete_bucket")
    def delete_bucket(self, bucket_name: str) -> None:
        """Delete a bucket directory and everything in it."""
        bucket_dir = self._bucket_dir(bucket_name)
        if not bucket_dir.exists():
            return
        try:
            shutil.rmtree(bucket_dir)
        except OSError as e:
            raise _translate_os_error(e, bucket=bucket_name) from e
        logger.info("Deleted bucket directory: %s", bucket_name)

    @traced_store_operation("list_buckets")
    def list_buckets(self) -> list[Bucket]:
        if not self._base_dir.exists():
            return []
        try:
            entries = sorted(self._base_dir.iterdir(), key=lambda p: p.name)
            return [
                Bucket(name=entry.name, creation_date=format_timestamp(entry.stat().st_mtime))
                for entry in entries
                if entry.is_dir()
            ]
        except OSError as e:
            raise _translate_os_error(e) from e

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
        """Write an object.

        The filesystem keeps no per-object content type; metadata reports a
        type guessed from the key's extension.
        """
        bucket_name, key, path = self._resolve(name, bucket)
        self._write_atomic(path, data, bucket=bucket_name, key=key)
        logger.debug("Stored object: bucket=%s key=%s", bucket_name, key)

    @traced_store_operation("read_object")
    def read_object(self, name: str, *, bucket: str | None = None) -> bytes | None:
        bucket_name, key, path = self._resolve(name, bucket)
        if not path.is_file():
            return None
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise _translate_os_error(e, bucket=bucket_name, key=key) from e

    @traced_store_operation("update_object")
    def update_object(self, name: str, data: StreamInput, *, bucket: str | None = None) -> None:
        found, meta = self.exists(name, bucket=bucket)
        if not found or meta is None:
            bucket_name, key, _ = self._resolve(name, bucket)
            raise ObjectNotFoundError(bucket=bucket_name, key=key)
        self.create_object(name, data, meta.content_type, bucket=bucket)

    @traced_store_operation("delete_object")
    def delete_object(self, name: str, *, bucket: str | None = None) -> None:
        """Delete an object. Deleting an absent object is a no-op, as on S3."""
        bucket_name, key, path = self._resolve(name, bucket)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise _translate_os_error(e, bucket=bucket_name, key=key) from e
        self._prune_empty_dirs(path.parent, self._bucket_dir(bucket_name))
        logger.debug("Deleted object: bucket=%s key=%s", bucket_name, key)

    @traced_store_operation("list_objects")
    def list_objects(self, bucket_name: str = "") -> list[ObjectMetadata]:
        bucket_name = bucket_name or self._bucket
        if not bucket_name:
            raise InvalidBucketNameError("No bucket given and no bucket selected")

        bucket_dir = self._bucket_dir(bucket_name)
        if not bucket_dir.is_dir():
            raise BucketNotFoundError(bucket=bucket_name)

        objects: list[ObjectMetadata] = []
        try:
            for root, dirs, files in os.walk(bucket_dir):
                dirs.sort()
                for filename in sorted(files):
                    if filename.endswith(_TMP_SUFFIX):
                        continue
                    path = Path(root) / filename
                    key = path.relative_to(bucket_dir).as_posix()
                    objects.append(self._stat_metadata(path, key))
        except OSError as e:
            raise _translate_os_error(e, bucket=bucket_name) from e
        return objects

    @traced_store_operation("exists")
    def exists(self, name: str, *, bucket: str | None = None) -> tuple[bool, ObjectMetadata | None]:
        bucket_name, key, path = self._resolve(name, bucket)
        try:
            if not path.is_file():
                return False, None
            return True, self._stat_metadata(path, key)
        except FileNotFoundError:
            return False, None
        except OSError as e:
            raise _translate_os_error(e, bucket=bucket_name, key=key) from e

    @traced_store_operation("metadata")
    def metadata(self, name: str, *, bucket: str | None = None) -> ObjectMetadata:
        found, meta = self.exists(name, bucket=bucket)
        if not found or meta is None:
            bucket_name, key = split_path(self._bucket if bucket is None else bucket, name)
            raise ObjectNotFoundError(bucket=bucket_name, key=key)
        return meta

    @traced_store_operation("copy_object")
    def copy_object(self, src: str, dest: str, *, bucket: str | None = None) -> None:
        src_bucket, src_key, src_path = self._resolve(src, bucket)
        dest_bucket, dest_key, dest_path = self._resolve(dest, bucket)

        if not src_path.is_file():
            raise ObjectNotFoundError(bucket=src_bucket, key=src_key)

        try:
            with src_path.open("rb") as source:
                self._write_atomic(dest_path, source, bucket=dest_bucket, key=dest_key)
        except FileNotFoundError as e:
            raise ObjectNotFoundError(bucket=src_bucket, key=src_key, cause=e) from e
        except OSError as e:
            raise _translate_os_error(e, bucket=src_bucket, key=src_key) from e

    @traced_store_operation("move_object")
    def move_object(self, src: str, dest: str, *, bucket: str | None = None) -> None:
        # Same source and destination: nothing to move, but the source must exist
        if self._resolve(src, bucket)[:2] == self._resolve(dest, bucket)[:2]:
            self.metadata(src, bucket=bucket)
            return
        self.copy_object(src, dest, bucket=bucket)
        try:
            self.delete_object(src, bucket=bucket)
        except ObjectStorageError:
            logger.warning("Move copied %s to %s but failed to delete the source", src, dest)
            raise


def _construct(config: object) -> FilesystemStore:
    """Registry constructor: build and health-check a FilesystemStore."""
    if not isinstance(config, FilesystemConfig):
        raise ClientInitError(f"Expected FilesystemConfig, got {type(config).__name__}")
    store = FilesystemStore(config)
    store.health_check()
    return store


def register(registry: DriverRegistry) -> None:
    """Register the filesystem driver."""
    registry.register(FILESYSTEM_DRIVER, _construct)
