"""Tests for application settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from stack.config import Settings


class TestMediaPath:
    """Tests for the uploads directory setting."""

    def test_slashes_are_trimmed(self) -> None:
        assert Settings(media_path="/wp-content/uploads/").media_path == "wp-content/uploads"

    @pytest.mark.parametrize("value", ["", "/", "//"])
    def test_empty_path_is_rejected(self, value: str) -> None:
        with pytest.raises(ValidationError, match="STACK_MEDIA_PATH"):
            Settings(media_path=value)

    def test_read_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STACK_MEDIA_PATH", "files/")

        assert Settings().media_path == "files"
