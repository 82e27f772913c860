"""Integration tests for the MinIO driver against a live server.

Start one with test-object-store/docker-compose.yml, then run with:

    STOREKIT_MINIO_ENDPOINT=localhost:9000 \
    STOREKIT_MINIO_ACCESS_KEY=admin \
    STOREKIT_MINIO_SECRET_KEY=adminpassword \
    pytest tests/test_object_store_minio_integration.py
"""

from __future__ import annotations

import io
import os
import uuid
from collections.abc import Generator
from typing import Any

import pytest

from storekit.config import MinioConfig
from storekit.errors import BucketAlreadyExistsError, BucketNotFoundError, ObjectNotFoundError

pytestmark = pytest.mark.integration

ENDPOINT_ENV = "STOREKIT_MINIO_ENDPOINT"
ACCESS_KEY_ENV = "STOREKIT_MINIO_ACCESS_KEY"
SECRET_KEY_ENV = "STOREKIT_MINIO_SECRET_KEY"
REQUIRE_MINIO_ENV = "STOREKIT_REQUIRE_MINIO"


def _skip_or_fail_if_no_minio() -> None:
    """Skip or fail test if MinIO is not configured."""
    require_minio = os.environ.get(REQUIRE_MINIO_ENV, "0") == "1"

    if not os.environ.get(ENDPOINT_ENV):
        msg = f"MinIO integration tests require {ENDPOINT_ENV}"
        if require_minio:
            pytest.fail(f"REQUIRED: {msg} ({REQUIRE_MINIO_ENV}=1)")
        else:
            pytest.skip(msg)


@pytest.fixture
def minio_store() -> Generator[Any, None, None]:
    """Create a MinioStore against the live server."""
    _skip_or_fail_if_no_minio()

    from storekit.registry import default_registry

    config = MinioConfig(
        endpoint=os.environ[ENDPOINT_ENV],
        access_key=os.environ.get(ACCESS_KEY_ENV, "admin"),
        secret_key=os.environ.get(SECRET_KEY_ENV, "adminpassword"),
    )
    store = default_registry().new(config)
    yield store
    store.clean_up()


@pytest.fixture
def bucket(minio_store: Any) -> Generator[str, None, None]:
    """Create a uniquely named bucket and remove it with its contents afterwards."""
    name = f"storekit-it-{uuid.uuid4().hex[:12]}"
    minio_store.create_bucket(name)
    yield name
    for obj in minio_store.list_objects(name):
        minio_store.delete_object(obj.key, bucket=name)
    minio_store.delete_bucket(name)


class TestMinioLive:
    """End-to-end behavior against MinIO."""

    def test_object_lifecycle(self, minio_store: Any, bucket: str) -> None:
        minio_store.create_object(f"{bucket}/k.txt", b"hello", "text/plain")

        found, meta = minio_store.exists(f"{bucket}/k.txt")
        assert found is True
        assert meta.size == 5
        assert meta.content_type == "text/plain"
        assert meta.etag

        assert minio_store.read_object(f"{bucket}/k.txt") == b"hello"

        minio_store.move_object(f"{bucket}/k.txt", f"{bucket}/k2.txt")

        assert minio_store.exists(f"{bucket}/k.txt") == (False, None)
        assert minio_store.read_object(f"{bucket}/k2.txt") == b"hello"

    def test_update_preserves_content_type(self, minio_store: Any, bucket: str) -> None:
        minio_store.set_bucket(bucket)
        minio_store.create_object("data.csv", io.BytesIO(b"a,b"), "text/csv")

        minio_store.update_object("data.csv", b"a,b,c")

        meta = minio_store.metadata("data.csv")
        assert meta.size == 5
        assert meta.content_type == "text/csv"

    def test_nested_keys_listed_recursively(self, minio_store: Any, bucket: str) -> None:
        minio_store.create_object("a.txt", b"1", bucket=bucket)
        minio_store.create_object("dir/sub/b.txt", b"22", bucket=bucket)

        keys = sorted(o.key for o in minio_store.list_objects(bucket))

        assert keys == ["a.txt", "dir/sub/b.txt"]

    def test_missing_object_semantics(self, minio_store: Any, bucket: str) -> None:
        assert minio_store.read_object(f"{bucket}/missing") is None
        assert minio_store.exists(f"{bucket}/missing") == (False, None)

        with pytest.raises(ObjectNotFoundError):
            minio_store.update_object(f"{bucket}/missing", b"x")

    def test_bucket_semantics(self, minio_store: Any, bucket: str) -> None:
        assert bucket in [b.name for b in minio_store.list_buckets()]

        with pytest.raises(BucketAlreadyExistsError):
            minio_store.create_bucket(bucket)

        with pytest.raises(BucketNotFoundError):
            minio_store.set_bucket(f"{bucket}-absent")

        minio_store.delete_bucket(f"{bucket}-absent")
