"""Backend configuration values.

Each driver consumes one frozen config model exposing driver_name(). The
registry treats configs as opaque; validation belongs to the driver
constructors.

Environment Variables (config_from_env):
    STOREKIT_DRIVER: "filesystem", "minio", "s3" or "aws" (default: "filesystem")
    STOREKIT_BASE_PATH: Base directory for the filesystem driver
        (default: OS temp dir / storekit_objects)
    STOREKIT_ENDPOINT: host[:port] of the S3-compatible endpoint
    STOREKIT_ACCESS_KEY / STOREKIT_SECRET_KEY / STOREKIT_TOKEN: credentials
    STOREKIT_REGION: Region hint (default: "us-east-1")
    STOREKIT_BUCKET: Initial bucket for the s3 driver
    STOREKIT_USE_SSL: "1"/"true"/"yes" to use HTTPS
    STOREKIT_USE_PATH_STYLE: "1"/"true"/"yes" for path-style addressing
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from storekit.errors import UnknownDriverError

DEFAULT_REGION = "us-east-1"

FILESYSTEM_DRIVER = "filesystem"
MINIO_DRIVER = "minio"
S3_DRIVER = "s3"
AWS_DRIVER_ALIAS = "aws"

STOREKIT_DRIVER_ENV = "STOREKIT_DRIVER"
STOREKIT_BASE_PATH_ENV = "STOREKIT_BASE_PATH"


@runtime_checkable
class NamedConfig(Protocol):
    """A configuration value that names the driver it belongs to."""

    def driver_name(self) -> str: ...


class FilesystemConfig(BaseModel):
    """Configuration for the local filesystem driver."""

    model_config = ConfigDict(frozen=True)

    base_path: str = Field(default="", description="Root directory holding one directory per bucket")

    @field_validator("base_path", mode="before")
    @classmethod
    def _coerce_path(cls, value: object) -> object:
        if isinstance(value, Path):
            return str(value)
        return value

    def driver_name(self) -> str:
        return FILESYSTEM_DRIVER


class MinioConfig(BaseModel):
    """Configuration for self-hosted S3-compatible storage (MinIO)."""

    model_config = ConfigDict(frozen=True)

    endpoint: str = Field(default="", description="host[:port], without scheme")
    access_key: SecretStr = Field(default=SecretStr(""), description="Access key ID")
    secret_key: SecretStr = Field(default=SecretStr(""), description="Secret access key")
    token: SecretStr | None = Field(default=None, description="Session token")
    region: str = Field(default=DEFAULT_REGION, description="Region hint")
    use_ssl: bool = Field(default=False, description="Connect over HTTPS")
    use_path_style: bool = Field(default=True, description="Path-style bucket addressing")

    def driver_name(self) -> str:
        return MINIO_DRIVER


class S3Config(BaseModel):
    """Configuration for AWS S3 (or an S3 endpoint override) via boto3."""

    model_config = ConfigDict(frozen=True)

    region: str = Field(default=DEFAULT_REGION, description="AWS region")
    bucket: str = Field(default="", description="Initially selected bucket")
    endpoint: str = Field(default="", description="Endpoint override host[:port]")
    access_key: SecretStr = Field(default=SecretStr(""), description="Access key ID")
    secret_key: SecretStr = Field(default=SecretStr(""), description="Secret access key")
    token: SecretStr | None = Field(default=None, description="Session token")
    use_ssl: bool = Field(default=True, description="Use HTTPS for the endpoint override")
    use_path_style: bool = Field(default=False, description="Path-style bucket addressing")
    driver: Literal["s3", "aws"] = Field(default=S3_DRIVER, description="Registry name to resolve through")

    def driver_name(self) -> str:
        return self.driver


def env_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    """Get boolean from environment mapping."""
    val = environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no"):
        return False
    return default


def _env_str(environ: Mapping[str, str], key: str, default: str = "") -> str:
    return environ.get(key, default).strip()


def _env_secret(environ: Mapping[str, str], key: str) -> SecretStr | None:
    value = _env_str(environ, key)
    return SecretStr(value) if value else None


def config_from_env(
    environ: Mapping[str, str] | None = None,
) -> FilesystemConfig | MinioConfig | S3Config:
    """Build a driver config from STOREKIT_* environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ).

    Returns:
        Config for the driver named by STOREKIT_DRIVER.

    Raises:
        UnknownDriverError: If STOREKIT_DRIVER names no bundled driver.
    """
    if environ is None:
        environ = os.environ

    driver = _env_str(environ, STOREKIT_DRIVER_ENV, FILESYSTEM_DRIVER).lower()

    if driver == FILESYSTEM_DRIVER:
        base_path = _env_str(environ, STOREKIT_BASE_PATH_ENV)
        if not base_path:
            base_path = str(Path(tempfile.gettempdir()) / "storekit_objects")
        return FilesystemConfig(base_path=base_path)

    access_key = SecretStr(_env_str(environ, "STOREKIT_ACCESS_KEY"))
    secret_key = SecretStr(_env_str(environ, "STOREKIT_SECRET_KEY"))
    token = _env_secret(environ, "STOREKIT_TOKEN")
    region = _env_str(environ, "STOREKIT_REGION", DEFAULT_REGION) or DEFAULT_REGION
    endpoint = _env_str(environ, "STOREKIT_ENDPOINT")

    if driver == MINIO_DRIVER:
        return MinioConfig(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            token=token,
            region=region,
            use_ssl=env_bool(environ, "STOREKIT_USE_SSL", False),
            use_path_style=env_bool(environ, "STOREKIT_USE_PATH_STYLE", True),
        )

    if driver in (S3_DRIVER, AWS_DRIVER_ALIAS):
        return S3Config(
            region=region,
            bucket=_env_str(environ, "STOREKIT_BUCKET"),
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            token=token,
            use_ssl=env_bool(environ, "STOREKIT_USE_SSL", True),
            use_path_style=env_bool(environ, "STOREKIT_USE_PATH_STYLE", False),
            driver=driver,
        )

    raise UnknownDriverError(driver)
