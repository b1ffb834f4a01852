"""Tests for structured logging."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pytest

from stack.media.registry import SchemeRegistry
from stack.media.stream import MediaStreamWrapper
from stack.observability.logging import (
    ConsoleFormatter,
    JsonFormatter,
    configure_logging,
    correlation_id_var,
    request_id_var,
)


def _record(message: str = "unlink failed", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="stack.media.stream",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=None,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def request_ids() -> Iterator[None]:
    request_token = request_id_var.set("req-1")
    correlation_token = correlation_id_var.set("corr-1")
    yield
    request_id_var.reset(request_token)
    correlation_id_var.reset(correlation_token)


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_basic_fields(self) -> None:
        data = json.loads(JsonFormatter().format(_record()))

        assert data["level"] == "WARNING"
        assert data["logger"] == "stack.media.stream"
        assert data["message"] == "unlink failed"
        assert "request_id" not in data
        assert "blob_key" not in data

    def test_request_ids(self, request_ids: None) -> None:
        data = json.loads(JsonFormatter().format(_record()))

        assert data["request_id"] == "req-1"
        assert data["correlation_id"] == "corr-1"

    def test_media_fields(self) -> None:
        record = _record(storage_type="gcs", blob_key="wp-content/uploads/a.jpg", other="x")

        data = json.loads(JsonFormatter().format(record))

        assert data["storage_type"] == "gcs"
        assert data["blob_key"] == "wp-content/uploads/a.jpg"
        assert "other" not in data


class TestConsoleFormatter:
    """Tests for ConsoleFormatter."""

    def test_context_suffix(self, request_ids: None) -> None:
        line = ConsoleFormatter().format(_record(blob_key="a.jpg"))

        assert line.endswith(
            "WARNING  stack.media.stream: unlink failed "
            "[request_id=req-1 correlation_id=corr-1 blob_key=a.jpg]"
        )

    def test_no_context(self) -> None:
        line = ConsoleFormatter().format(_record())

        assert line.endswith("stack.media.stream: unlink failed")


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_replaces_root_handlers(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(json_format=True, level="debug")

            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JsonFormatter)

            configure_logging(json_format=False)

            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, ConsoleFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestWrapperDiagnostics:
    """Stream wrapper warnings carry the backend and key."""

    def test_unlink_failure_is_tagged(
        self, registry: SchemeRegistry, caplog: pytest.LogCaptureFixture
    ) -> None:
        wrapper = MediaStreamWrapper(registry)

        with caplog.at_level(logging.WARNING, logger="stack.media.stream"):
            assert wrapper.unlink("media://wp-content/uploads/missing.jpg") is False

        record = caplog.records[-1]
        assert record.storage_type == "memory"
        assert record.blob_key == "wp-content/uploads/missing.jpg"
