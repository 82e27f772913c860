"""Tests for the storekit error taxonomy and S3 code mapping."""

from __future__ import annotations

import pytest

from storekit.errors import (
    AccessDeniedError,
    BucketAlreadyExistsError,
    BucketNotEmptyError,
    BucketNotFoundError,
    ErrorKind,
    InvalidBucketNameError,
    ObjectNotFoundError,
    ObjectStorageError,
    PreconditionFailedError,
    StorageBackendError,
    UnknownDriverError,
    error_from_code,
)


class TestErrorFromCode:
    """S3 wire codes map onto semantic error kinds."""

    @pytest.mark.parametrize(
        ("code", "expected"),
        [
            ("NoSuchBucket", BucketNotFoundError),
            ("NoSuchKey", ObjectNotFoundError),
            ("NotFound", ObjectNotFoundError),
            ("404", ObjectNotFoundError),
            ("AccessDenied", AccessDeniedError),
            ("403", AccessDeniedError),
            ("InvalidAccessKeyId", AccessDeniedError),
            ("SignatureDoesNotMatch", AccessDeniedError),
            ("BucketNotEmpty", BucketNotEmptyError),
            ("Conflict", BucketNotEmptyError),
            ("PreconditionFailed", PreconditionFailedError),
            ("412", PreconditionFailedError),
            ("BucketAlreadyOwnedByYou", BucketAlreadyExistsError),
            ("BucketAlreadyExists", BucketAlreadyExistsError),
            ("InvalidBucketName", InvalidBucketNameError),
        ],
    )
    def test_known_codes(self, code: str, expected: type[ObjectStorageError]) -> None:
        err = error_from_code(code, "native message", bucket="b", key="k")

        assert type(err) is expected
        assert err.bucket == "b"
        assert err.key == "k"
        assert err.message == "native message"

    def test_not_found_override_for_bucket_operations(self) -> None:
        err = error_from_code("404", bucket="b", not_found=BucketNotFoundError)

        assert isinstance(err, BucketNotFoundError)

    def test_unknown_code_preserves_native_details(self) -> None:
        cause = RuntimeError("boom")

        err = error_from_code("SlowDown", "Please reduce your request rate", cause=cause)

        assert isinstance(err, StorageBackendError)
        assert err.kind == ErrorKind.BACKEND
        assert err.code == "SlowDown"
        assert err.message == "Please reduce your request rate"
        assert err.cause is cause

    def test_missing_code_is_backend_error(self) -> None:
        err = error_from_code(None)

        assert isinstance(err, StorageBackendError)
        assert err.code is None

    def test_missing_message_uses_default(self) -> None:
        err = error_from_code("NoSuchKey")

        assert err.message == ObjectNotFoundError.default_message


class TestObjectStorageError:
    """Tests for error formatting."""

    def test_str_includes_context(self) -> None:
        err = ObjectNotFoundError(bucket="photos", key="cat.jpg")

        assert str(err) == "Object not found bucket=photos key=cat.jpg"

    def test_to_dict(self) -> None:
        err = StorageBackendError("boom", code="InternalError", bucket="b")

        assert err.to_dict() == {
            "kind": "backend",
            "message": "boom",
            "bucket": "b",
            "key": None,
            "code": "InternalError",
        }

    def test_unknown_driver_carries_name(self) -> None:
        err = UnknownDriverError("gcs")

        assert err.driver_name == "gcs"
        assert err.kind == ErrorKind.UNKNOWN_DRIVER
        assert "gcs" in str(err)

    def test_every_error_is_object_storage_error(self) -> None:
        assert issubclass(BucketNotEmptyError, ObjectStorageError)
        assert issubclass(UnknownDriverError, ObjectStorageError)
