"""Bucket-bound view over a Store.

BucketScope fixes the bucket at construction and passes it to every call as
``bucket=``, so it never reads or writes the wrapped store's selected bucket.
Several scopes over one store can be used side by side.
"""

from __future__ import annotations

from storekit.errors import InvalidBucketNameError
from storekit.models import DEFAULT_CONTENT_TYPE, ObjectMetadata
from storekit.store import Store
from storekit.streams import StreamInput


class BucketScope:
    """Object operations on a single bucket using bare keys.

    Example:
        photos = BucketScope(store, "photos")
        photos.create_object("2024/cat.jpg", data, "image/jpeg")
    """

    def __init__(self, store: Store, bucket: str) -> None:
        if not bucket:
            raise InvalidBucketNameError("BucketScope requires a bucket name")
        self._store = store
        self._bucket = bucket

    @property
    def store(self) -> Store:
        return self._store

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def driver_name(self) -> str:
        return self._store.driver_name

    def create_object(self, key: str, data: StreamInput, content_type: str = DEFAULT_CONTENT_TYPE) -> None:
        self._store.create_object(key, data, content_type, bucket=self._bucket)

    def read_object(self, key: str) -> bytes | None:
        return self._store.read_object(key, bucket=self._bucket)

    def update_object(self, key: str, data: StreamInput) -> None:
        self._store.update_object(key, data, bucket=self._bucket)

    def delete_object(self, key: str) -> None:
        self._store.delete_object(key, bucket=self._bucket)

    def list_objects(self) -> list[ObjectMetadata]:
        return self._store.list_objects(self._bucket)

    def exists(self, key: str) -> tuple[bool, ObjectMetadata | None]:
        return self._store.exists(key, bucket=self._bucket)

    def metadata(self, key: str) -> ObjectMetadata:
        return self._store.metadata(key, bucket=self._bucket)

    def copy_object(self, src: str, dest: str) -> None:
        self._store.copy_object(src, dest, bucket=self._bucket)

    def move_object(self, src: str, dest: str) -> None:
        self._store.move_object(src, dest, bucket=self._bucket)

    def __repr__(self) -> str:
        return f"BucketScope(driver={self.driver_name!r}, bucket={self._bucket!r})"
