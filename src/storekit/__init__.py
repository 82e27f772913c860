"""storekit: one object storage interface over several backends.

Backends:
- filesystem: buckets are directories under a base path (dev/test)
- minio: self-hosted S3-compatible storage via the minio client
- s3 / aws: AWS S3 (or an endpoint override) via boto3

Drivers are resolved by name through a DriverRegistry. open_store() builds
one from STOREKIT_* environment variables (see storekit.config).
"""

from storekit.config import FilesystemConfig, MinioConfig, S3Config, config_from_env
from storekit.errors import (
    AccessDeniedError,
    BucketAlreadyExistsError,
    BucketNotEmptyError,
    BucketNotFoundError,
    ClientInitError,
    ErrorKind,
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
    UnknownDriverError,
)
from storekit.models import Bucket, ObjectMetadata
from storekit.paths import scheme, split_path
from storekit.registry import DriverRegistry, default_registry, new, open_store, register
from storekit.scoped import BucketScope
from storekit.store import Store
from storekit.streams import get_stream_size

__all__ = [
    "Store",
    "BucketScope",
    "DriverRegistry",
    "default_registry",
    "register",
    "new",
    "open_store",
    "FilesystemConfig",
    "MinioConfig",
    "S3Config",
    "config_from_env",
    "Bucket",
    "ObjectMetadata",
    "split_path",
    "scheme",
    "get_stream_size",
    "ErrorKind",
    "ObjectStorageError",
    "InvalidEndpointError",
    "InvalidAccessKeyError",
    "InvalidSecretKeyError",
    "ClientInitError",
    "UnknownDriverError",
    "InvalidBucketNameError",
    "InvalidObjectNameError",
    "InvalidFileError",
    "BucketNotFoundError",
    "ObjectNotFoundError",
    "BucketNotEmptyError",
    "AccessDeniedError",
    "PreconditionFailedError",
    "BucketAlreadyExistsError",
    "StorageBackendError",
]
