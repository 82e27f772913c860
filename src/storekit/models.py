"""storekit data models.

Read-only snapshots produced fresh by every listing and metadata call.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def format_timestamp(value: datetime | float | None) -> str:
    """Render a datetime or POSIX timestamp as an ISO-8601 string.

    Naive datetimes are assumed to be UTC. None renders as an empty string.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.isoformat()
    return datetime.fromtimestamp(value, tz=UTC).isoformat()


@dataclass(frozen=True)
class ObjectMetadata:
    """Metadata for a stored object.

    Attributes:
        key: Object key within its bucket.
        size: Size of the object content in bytes.
        content_type: MIME type of the content.
        etag: Opaque entity tag reported by the backend ("" when unknown).
        last_modified: Last modification time as an ISO-8601 string.
    """

    key: str
    size: int
    content_type: str = DEFAULT_CONTENT_TYPE
    etag: str = ""
    last_modified: str = ""

    def to_dict(self) -> dict[str, str | int]:
        """Convert metadata to dictionary for JSON serialization."""
        return {
            "key": self.key,
            "size": self.size,
            "content_type": self.content_type,
            "etag": self.etag,
            "last_modified": self.last_modified,
        }


@dataclass(frozen=True)
class Bucket:
    """A bucket descriptor.

    Attributes:
        name: Bucket name.
        creation_date: Creation (or, for directories, modification) time as ISO-8601.
    """

    name: str
    creation_date: str = ""

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"name": self.name, "creation_date": self.creation_date}
