"""Tests for backend config models and environment loading."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from storekit.config import (
    FilesystemConfig,
    MinioConfig,
    NamedConfig,
    S3Config,
    config_from_env,
)
from storekit.errors import UnknownDriverError


class TestConfigModels:
    """Tests for config defaults and driver names."""

    def test_driver_names(self) -> None:
        assert FilesystemConfig(base_path="/tmp/x").driver_name() == "filesystem"
        assert MinioConfig().driver_name() == "minio"
        assert S3Config().driver_name() == "s3"
        assert S3Config(driver="aws").driver_name() == "aws"

    def test_minio_defaults(self) -> None:
        config = MinioConfig(endpoint="localhost:9000")

        assert config.region == "us-east-1"
        assert config.use_ssl is False
        assert config.use_path_style is True
        assert config.token is None

    def test_s3_defaults(self) -> None:
        config = S3Config()

        assert config.region == "us-east-1"
        assert config.use_ssl is True
        assert config.use_path_style is False
        assert config.bucket == ""

    def test_secrets_hidden_in_repr(self) -> None:
        config = MinioConfig(endpoint="e", access_key="AKIAEXAMPLE", secret_key="supersecret")

        assert "supersecret" not in repr(config)
        assert "AKIAEXAMPLE" not in repr(config)
        assert config.secret_key.get_secret_value() == "supersecret"

    def test_configs_are_frozen(self) -> None:
        config = S3Config(region="eu-west-1")

        with pytest.raises(ValidationError):
            config.region = "us-west-2"  # type: ignore[misc]

    def test_filesystem_accepts_path(self, tmp_path: Path) -> None:
        config = FilesystemConfig(base_path=tmp_path)

        assert config.base_path == str(tmp_path)

    def test_configs_satisfy_named_config(self) -> None:
        assert isinstance(FilesystemConfig(), NamedConfig)
        assert isinstance(MinioConfig(), NamedConfig)
        assert isinstance(S3Config(), NamedConfig)


class TestConfigFromEnv:
    """Tests for STOREKIT_* environment loading."""

    def test_default_is_filesystem_in_temp_dir(self) -> None:
        config = config_from_env({})

        assert isinstance(config, FilesystemConfig)
        assert config.base_path == str(Path(tempfile.gettempdir()) / "storekit_objects")

    def test_filesystem_base_path(self) -> None:
        config = config_from_env({"STOREKIT_DRIVER": "filesystem", "STOREKIT_BASE_PATH": "/data/objects"})

        assert isinstance(config, FilesystemConfig)
        assert config.base_path == "/data/objects"

    def test_minio(self) -> None:
        config = config_from_env(
            {
                "STOREKIT_DRIVER": "minio",
                "STOREKIT_ENDPOINT": "localhost:9000",
                "STOREKIT_ACCESS_KEY": "admin",
                "STOREKIT_SECRET_KEY": "adminpassword",
                "STOREKIT_USE_SSL": "true",
            }
        )

        assert isinstance(config, MinioConfig)
        assert config.endpoint == "localhost:9000"
        assert config.access_key.get_secret_value() == "admin"
        assert config.use_ssl is True
        assert config.use_path_style is True
        assert config.token is None

    @pytest.mark.parametrize("driver", ["s3", "aws", "AWS"])
    def test_s3_and_alias(self, driver: str) -> None:
        config = config_from_env(
            {
                "STOREKIT_DRIVER": driver,
                "STOREKIT_REGION": "eu-central-1",
                "STOREKIT_BUCKET": "reports",
                "STOREKIT_TOKEN": "session",
                "STOREKIT_USE_PATH_STYLE": "1",
            }
        )

        assert isinstance(config, S3Config)
        assert config.driver_name() == driver.lower()
        assert config.region == "eu-central-1"
        assert config.bucket == "reports"
        assert config.token is not None
        assert config.token.get_secret_value() == "session"
        assert config.use_ssl is True
        assert config.use_path_style is True

    def test_blank_region_falls_back_to_default(self) -> None:
        config = config_from_env({"STOREKIT_DRIVER": "s3", "STOREKIT_REGION": "  "})

        assert config.region == "us-east-1"  # type: ignore[union-attr]

    def test_reads_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STOREKIT_DRIVER", "minio")
        monkeypatch.setenv("STOREKIT_ENDPOINT", "minio.internal:9000")

        config = config_from_env()

        assert isinstance(config, MinioConfig)
        assert config.endpoint == "minio.internal:9000"

    def test_unknown_driver(self) -> None:
        with pytest.raises(UnknownDriverError) as exc_info:
            config_from_env({"STOREKIT_DRIVER": "gcs"})

        assert exc_info.value.driver_name == "gcs"
