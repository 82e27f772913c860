"""storekit capability contract.

Defines the Store protocol every storage driver implements. Drivers share no
base class; they satisfy this protocol structurally.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from storekit.models import DEFAULT_CONTENT_TYPE, Bucket, ObjectMetadata
from storekit.streams import StreamInput


@runtime_checkable
class Store(Protocol):
    """Uniform object storage operations.

    Object names are either bare keys (when a bucket is selected through
    set_bucket or passed as ``bucket=``) or fully qualified "bucket/key"
    paths, resolved by storekit.paths.split_path.

    Implementations:
    - FilesystemStore: buckets are directories under a base path
    - MinioStore: self-hosted S3-compatible storage via the minio client
    - S3Store: AWS S3 (or any endpoint override) via boto3
    """

    @property
    def driver_name(self) -> str:
        """Return the registry name of the driver backing this store."""
        ...

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def setup(self) -> None:
        """Initialize backend resources. Idempotent."""
        ...

    def health_check(self) -> None:
        """Validate configuration and reachability without mutating state.

        Raises:
            InvalidEndpointError, InvalidAccessKeyError, InvalidSecretKeyError:
                If required configuration is missing.
            ClientInitError: If the backend cannot be reached.
        """
        ...

    def clean_up(self) -> None:
        """Release backend-held resources. Safe to call multiple times."""
        ...

    # ------------------------------------------------------------------
    # Session context
    # ------------------------------------------------------------------

    def set_bucket(self, bucket_name: str) -> bool:
        """Select the current bucket.

        Args:
            bucket_name: Bucket to select, or "" to clear the selection.

        Returns:
            True if a bucket is now selected, False if the selection was cleared.

        Raises:
            BucketNotFoundError: If the backend verifies existence and the
                bucket is absent.
        """
        ...

    def set_region(self, region: str) -> None:
        """Update the session region hint. No-op where not applicable."""
        ...

    # ------------------------------------------------------------------
    # Buckets
    # ------------------------------------------------------------------

    def create_bucket(self, bucket_name: str) -> None:
        """Create a bucket.

        Raises:
            InvalidBucketNameError: If bucket_name is empty.
            BucketAlreadyExistsError: If the bucket already exists.
        """
        ...

    def delete_bucket(self, bucket_name: str) -> None:
        """Delete a bucket. Deleting an absent bucket succeeds silently.

        Raises:
            InvalidBucketNameError: If bucket_name is empty.
            BucketNotEmptyError: If the backend refuses because of remaining objects.
        """
        ...

    def list_buckets(self) -> list[Bucket]:
        """List all buckets."""
        ...

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    def create_object(
        self,
        name: str,
        data: StreamInput,
        content_type: str = DEFAULT_CONTENT_TYPE,
        *,
        bucket: str | None = None,
    ) -> None:
        """Write an object, overwriting any existing one.

        Raises:
            InvalidObjectNameError: If name cannot be resolved.
            PreconditionFailedError: If the stream size cannot be determined.
        """
        ...

    def read_object(self, name: str, *, bucket: str | None = None) -> bytes | None:
        """Return the object's full content, or None if it does not exist."""
        ...

    def update_object(self, name: str, data: StreamInput, *, bucket: str | None = None) -> None:
        """Overwrite an existing object, preserving its content type.

        Raises:
            ObjectNotFoundError: If the object does not exist.
        """
        ...

    def delete_object(self, name: str, *, bucket: str | None = None) -> None:
        """Delete an object."""
        ...

    def list_objects(self, bucket_name: str = "") -> list[ObjectMetadata]:
        """Recursively list the objects of a bucket.

        Args:
            bucket_name: Bucket to list. Falls back to the selected bucket.

        Raises:
            InvalidBucketNameError: If no bucket is given or selected.
        """
        ...

    def exists(self, name: str, *, bucket: str | None = None) -> tuple[bool, ObjectMetadata | None]:
        """Probe for an object. Absence is (False, None), never an error."""
        ...

    def metadata(self, name: str, *, bucket: str | None = None) -> ObjectMetadata:
        """Return object metadata.

        Raises:
            ObjectNotFoundError: If the object does not exist.
        """
        ...

    def copy_object(self, src: str, dest: str, *, bucket: str | None = None) -> None:
        """Copy an object.

        Raises:
            ObjectNotFoundError: If the source does not exist.
        """
        ...

    def move_object(self, src: str, dest: str, *, bucket: str | None = None) -> None:
        """Copy an object then delete the source.

        Not atomic: if the delete fails after a successful copy, the object
        exists at both locations and the delete error is raised. Moving an
        object onto its own name leaves it in place.

        Raises:
            ObjectNotFoundError: If the source does not exist.
        """
        ...
