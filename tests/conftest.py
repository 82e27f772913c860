"""Pytest configuration and fixtures for storekit tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

import pytest

STOREKIT_ENV_VARS = [
    "STOREKIT_DRIVER",
    "STOREKIT_BASE_PATH",
    "STOREKIT_ENDPOINT",
    "STOREKIT_ACCESS_KEY",
    "STOREKIT_SECRET_KEY",
    "STOREKIT_TOKEN",
    "STOREKIT_REGION",
    "STOREKIT_BUCKET",
    "STOREKIT_USE_SSL",
    "STOREKIT_USE_PATH_STYLE",
    "STOREKIT_OTEL_ENABLED",
    "STOREKIT_OTEL_SERVICE_NAME",
    "STOREKIT_OTEL_EXPORTER",
    "STOREKIT_OTEL_TEST_CAPTURE",
]


@pytest.fixture(autouse=True)
def clean_storekit_env(monkeypatch: pytest.MonkeyPatch) -> Any:
    """Remove STOREKIT_* variables and reset tracing around every test.

    Integration tests read STOREKIT_MINIO_* variables, which are left alone.
    """
    for name in STOREKIT_ENV_VARS:
        if name in os.environ:
            monkeypatch.delenv(name)

    from storekit.observability.tracing import reset_tracing

    reset_tracing()
    yield
    reset_tracing()


@pytest.fixture
def temp_storage_dir() -> Any:
    """Create a temporary directory for storage tests."""
    with tempfile.TemporaryDirectory(prefix="storekit_test_storage_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fs_store(temp_storage_dir: Path) -> Any:
    """Create a FilesystemStore rooted in a temp directory."""
    from storekit.config import FilesystemConfig
    from storekit.drivers.filesystem import FilesystemStore

    store = FilesystemStore(FilesystemConfig(base_path=temp_storage_dir))
    store.setup()
    return store
