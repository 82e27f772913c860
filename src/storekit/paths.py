"""Bucket/key resolution shared by every driver."""

from __future__ import annotations

from storekit.errors import InvalidObjectNameError

SEPARATOR = "/"


def scheme(use_ssl: bool) -> str:
    """Return the URL scheme for an endpoint."""
    return "https" if use_ssl else "http"


def split_path(current_bucket: str | None, full_path: str) -> tuple[str, str]:
    """Resolve a caller-supplied path into a (bucket, key) pair.

    With a current bucket selected, the path is returned verbatim as the key,
    so keys may contain separators. Without one, the path is split on its
    first separator into bucket and key.

    Args:
        current_bucket: Selected bucket, or "" / None when unset.
        full_path: Object path supplied by the caller.

    Returns:
        Tuple of (bucket, key).

    Raises:
        InvalidObjectNameError: If the path is empty, or no bucket is selected
            and the path has no separator or either side of the split is empty.
    """
    if not full_path:
        raise InvalidObjectNameError("Invalid object name: empty path", bucket=current_bucket or None)

    if current_bucket:
        return current_bucket, full_path

    bucket, sep, key = full_path.partition(SEPARATOR)
    if not sep or not bucket or not key:
        raise InvalidObjectNameError(
            "Invalid object name: expected 'bucket/key' when no bucket is selected",
            key=full_path,
        )
    return bucket, key
