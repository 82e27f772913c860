"""Tests for storekit OpenTelemetry configuration."""

from __future__ import annotations

from pathlib import Path

import pytest


class TestTracingConfiguration:
    """Tests for tracing enablement and idempotent setup."""

    def test_tracing_disabled_by_default(self) -> None:
        from storekit.observability.tracing import configure_tracing, is_tracing_enabled

        assert is_tracing_enabled() is False
        assert configure_tracing() is False

    @pytest.mark.parametrize("value", ["1", "true", "yes"])
    def test_tracing_enabled_with_env_var(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        from storekit.observability.tracing import is_tracing_enabled

        monkeypatch.setenv("STOREKIT_OTEL_ENABLED", value)

        assert is_tracing_enabled() is True

    @pytest.mark.parametrize("value", ["0", "false", "off", ""])
    def test_falsy_values_keep_tracing_off(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        from storekit.observability.tracing import configure_tracing, is_tracing_enabled

        monkeypatch.setenv("STOREKIT_OTEL_ENABLED", value)

        assert is_tracing_enabled() is False
        assert configure_tracing() is False

    def test_tracing_idempotent(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from storekit.observability.tracing import configure_tracing

        monkeypatch.setenv("STOREKIT_OTEL_ENABLED", "1")
        monkeypatch.setenv("STOREKIT_OTEL_TEST_CAPTURE", "1")

        assert configure_tracing() is True
        assert configure_tracing() is True

    def test_spans_captured_and_cleared(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from opentelemetry import trace

        from storekit.observability.tracing import clear_test_spans, configure_tracing, get_test_spans

        monkeypatch.setenv("STOREKIT_OTEL_ENABLED", "1")
        monkeypatch.setenv("STOREKIT_OTEL_TEST_CAPTURE", "1")
        configure_tracing()
        clear_test_spans()

        with trace.get_tracer("test").start_as_current_span("sample"):
            pass

        assert [s.name for s in get_test_spans()] == ["sample"]

        clear_test_spans()
        assert get_test_spans() == []


class TestOpenStoreTracing:
    """open_store installs tracing on its own when the environment asks for it."""

    def test_open_store_emits_setup_span(self, monkeypatch: pytest.MonkeyPatch, temp_storage_dir: Path) -> None:
        from storekit.config import FilesystemConfig
        from storekit.observability.tracing import clear_test_spans, get_test_spans
        from storekit.registry import open_store

        monkeypatch.setenv("STOREKIT_OTEL_ENABLED", "1")
        monkeypatch.setenv("STOREKIT_OTEL_TEST_CAPTURE", "1")
        clear_test_spans()

        store = open_store(FilesystemConfig(base_path=temp_storage_dir))
        store.create_object("b/k", b"x")

        names = [s.name for s in get_test_spans()]
        assert "storekit.store.setup" in names
        assert "storekit.store.create_object" in names

    def test_open_store_without_tracing_records_nothing(self, temp_storage_dir: Path) -> None:
        from storekit.config import FilesystemConfig
        from storekit.observability.tracing import clear_test_spans, get_test_spans
        from storekit.registry import open_store

        clear_test_spans()

        open_store(FilesystemConfig(base_path=temp_storage_dir)).create_object("b/k", b"x")

        assert get_test_spans() == []
