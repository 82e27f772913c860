"""storekit error taxonomy.

Every driver translates its native errors into exactly one of the exception
types below. Errors that have no mapping surface as StorageBackendError, which
keeps the native code and message and chains the native exception.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Closed set of semantic storage error kinds."""

    INVALID_ENDPOINT = "invalid_endpoint"
    INVALID_ACCESS_KEY = "invalid_access_key"
    INVALID_SECRET_KEY = "invalid_secret_key"
    CLIENT_INIT_FAILED = "client_init_failed"
    UNKNOWN_DRIVER = "unknown_driver"
    INVALID_BUCKET_NAME = "invalid_bucket_name"
    INVALID_OBJECT_NAME = "invalid_object_name"
    INVALID_FILE = "invalid_file"
    BUCKET_NOT_FOUND = "bucket_not_found"
    OBJECT_NOT_FOUND = "object_not_found"
    BUCKET_NOT_EMPTY = "bucket_not_empty"
    ACCESS_DENIED = "access_denied"
    PRECONDITION_FAILED = "precondition_failed"
    BUCKET_ALREADY_EXISTS = "bucket_already_exists"
    BACKEND = "backend"


class ObjectStorageError(Exception):
    """Base exception for object storage operations.

    Attributes:
        message: Human-readable error message.
        kind: Semantic error kind shared by all drivers.
        bucket: Bucket associated with the operation (if applicable).
        key: Object key associated with the operation (if applicable).
        cause: Native exception that triggered this error (if any).
    """

    kind: ErrorKind = ErrorKind.BACKEND
    default_message: str = "Object storage error"

    def __init__(
        self,
        message: str | None = None,
        *,
        bucket: str | None = None,
        key: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.bucket = bucket
        self.key = key
        self.cause = cause

    def __str__(self) -> str:
        parts = [self.message]
        if self.bucket:
            parts.append(f"bucket={self.bucket}")
        if self.key:
            parts.append(f"key={self.key}")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for structured logging/JSON output."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "bucket": self.bucket,
            "key": self.key,
        }


class InvalidEndpointError(ObjectStorageError):
    """Raised when the endpoint (or filesystem base path) is missing."""

    kind = ErrorKind.INVALID_ENDPOINT
    default_message = "Invalid endpoint"


class InvalidAccessKeyError(ObjectStorageError):
    """Raised when the access key is missing."""

    kind = ErrorKind.INVALID_ACCESS_KEY
    default_message = "Invalid access key"


class InvalidSecretKeyError(ObjectStorageError):
    """Raised when the secret key is missing."""

    kind = ErrorKind.INVALID_SECRET_KEY
    default_message = "Invalid secret key"


class ClientInitError(ObjectStorageError):
    """Raised when the native client could not be constructed or reached."""

    kind = ErrorKind.CLIENT_INIT_FAILED
    default_message = "Failed to initialize storage client"


class UnknownDriverError(ObjectStorageError):
    """Raised when no driver is registered under the requested name."""

    kind = ErrorKind.UNKNOWN_DRIVER
    default_message = "Unknown storage driver"

    def __init__(self, driver_name: str, message: str | None = None) -> None:
        super().__init__(message or f"Unknown storage driver: {driver_name!r}")
        self.driver_name = driver_name


class InvalidBucketNameError(ObjectStorageError):
    """Raised for an empty or malformed bucket name."""

    kind = ErrorKind.INVALID_BUCKET_NAME
    default_message = "Invalid bucket name"


class InvalidObjectNameError(ObjectStorageError):
    """Raised for an empty or malformed object name, including path split failures."""

    kind = ErrorKind.INVALID_OBJECT_NAME
    default_message = "Invalid object name"


class InvalidFileError(ObjectStorageError):
    """Raised when a supplied stream could not be measured."""

    kind = ErrorKind.INVALID_FILE
    default_message = "Invalid file: stream size could not be determined"


class BucketNotFoundError(ObjectStorageError):
    """Raised when the resolved bucket does not exist."""

    kind = ErrorKind.BUCKET_NOT_FOUND
    default_message = "Bucket not found"


class ObjectNotFoundError(ObjectStorageError):
    """Raised when the resolved object does not exist."""

    kind = ErrorKind.OBJECT_NOT_FOUND
    default_message = "Object not found"


class BucketNotEmptyError(ObjectStorageError):
    """Raised when bucket deletion is blocked by remaining contents."""

    kind = ErrorKind.BUCKET_NOT_EMPTY
    default_message = "Bucket not empty"


class AccessDeniedError(ObjectStorageError):
    """Raised when the backend rejects an operation on authorization grounds."""

    kind = ErrorKind.ACCESS_DENIED
    default_message = "Access denied"


class PreconditionFailedError(ObjectStorageError):
    """Raised when a backend-side precondition is not met."""

    kind = ErrorKind.PRECONDITION_FAILED
    default_message = "Precondition failed"


class BucketAlreadyExistsError(ObjectStorageError):
    """Raised when bucket creation collides with an existing bucket."""

    kind = ErrorKind.BUCKET_ALREADY_EXISTS
    default_message = "Bucket already exists"


class StorageBackendError(ObjectStorageError):
    """Raised for native errors with no semantic mapping.

    Attributes:
        code: Native error code reported by the backend (if any).
    """

    kind = ErrorKind.BACKEND
    default_message = "Storage backend error"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        bucket: str | None = None,
        key: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key, cause=cause)
        self.code = code

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["code"] = self.code
        return data


_S3_CODE_MAP: dict[str, type[ObjectStorageError]] = {
    "NoSuchBucket": BucketNotFoundError,
    "AccessDenied": AccessDeniedError,
    "403": AccessDeniedError,
    "InvalidAccessKeyId": AccessDeniedError,
    "SignatureDoesNotMatch": AccessDeniedError,
    "BucketNotEmpty": BucketNotEmptyError,
    "Conflict": BucketNotEmptyError,
    "PreconditionFailed": PreconditionFailedError,
    "412": PreconditionFailedError,
    "BucketAlreadyOwnedByYou": BucketAlreadyExistsError,
    "BucketAlreadyExists": BucketAlreadyExistsError,
    "InvalidBucketName": InvalidBucketNameError,
}

# HEAD responses carry no body, so S3 reports a bare status code.
_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})


def error_from_code(
    code: str | None,
    message: str | None = None,
    *,
    bucket: str | None = None,
    key: str | None = None,
    not_found: type[ObjectStorageError] = ObjectNotFoundError,
    cause: BaseException | None = None,
) -> ObjectStorageError:
    """Map an S3 wire error code onto the storekit taxonomy.

    Args:
        code: Error code from the S3 error response (e.g. "NoSuchKey").
        message: Native error message.
        bucket: Bucket the failing operation targeted.
        key: Object key the failing operation targeted.
        not_found: Error type for generic not-found codes. Bucket-level
            operations pass BucketNotFoundError.
        cause: Native exception to attach.

    Returns:
        The mapped error, or StorageBackendError for unmapped codes.
    """
    code = code or ""
    if code in _NOT_FOUND_CODES:
        error_type: type[ObjectStorageError] = not_found
    else:
        mapped = _S3_CODE_MAP.get(code)
        if mapped is None:
            return StorageBackendError(
                message or code or None,
                code=code or None,
                bucket=bucket,
                key=key,
                cause=cause,
            )
        error_type = mapped
    return error_type(message or None, bucket=bucket, key=key, cause=cause)
