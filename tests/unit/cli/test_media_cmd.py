"""Tests for the media CLI commands."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from stack.cli import app
from stack.config import Settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def media_settings(local_settings: Settings, monkeypatch: pytest.MonkeyPatch) -> Settings:
    monkeypatch.setattr("stack.cli.media_cmd.settings", local_settings)
    return local_settings


class TestMediaCommands:
    """Tests for stack media."""

    def test_put_then_cat(self, tmp_path: Path) -> None:
        source = tmp_path / "local.txt"
        source.write_bytes(b"hello")

        result = runner.invoke(app, ["media", "put", "wp-content/uploads/a.txt", str(source)])
        assert result.exit_code == 0, result.output
        assert "Uploaded 5 bytes to media://wp-content/uploads/a.txt" in result.output

        result = runner.invoke(app, ["media", "cat", "media://wp-content/uploads/a.txt"])
        assert result.exit_code == 0
        assert result.stdout_bytes == b"hello"

    def test_stat_file(self, tmp_path: Path) -> None:
        (tmp_path / "wp-content/uploads").mkdir(parents=True)
        (tmp_path / "wp-content/uploads/a.jpg").write_bytes(b"12345")

        result = runner.invoke(app, ["media", "stat", "wp-content/uploads/a.jpg"])

        assert result.exit_code == 0
        assert "type:     file" in result.output
        assert "size:     5" in result.output

    def test_stat_directory(self) -> None:
        result = runner.invoke(app, ["media", "stat", "wp-content/uploads/2024"])

        assert result.exit_code == 0
        assert "type:     directory" in result.output

    def test_stat_missing(self) -> None:
        result = runner.invoke(app, ["media", "stat", "wp-content/uploads/missing.jpg"])

        assert result.exit_code == 1

    def test_mv_and_rm(self, tmp_path: Path) -> None:
        (tmp_path / "old.txt").write_bytes(b"x")

        result = runner.invoke(app, ["media", "mv", "old.txt", "new/name.txt"])
        assert result.exit_code == 0
        assert (tmp_path / "new/name.txt").read_bytes() == b"x"
        assert not (tmp_path / "old.txt").exists()

        result = runner.invoke(app, ["media", "rm", "new/name.txt"])
        assert result.exit_code == 0
        assert not (tmp_path / "new/name.txt").exists()

        result = runner.invoke(app, ["media", "rm", "new/name.txt"])
        assert result.exit_code == 1

    def test_mv_missing_source(self) -> None:
        result = runner.invoke(app, ["media", "mv", "missing.txt", "other.txt"])

        assert result.exit_code == 1

    def test_invalid_storage_uri(
        self, media_settings: Settings, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        broken = media_settings.model_copy(update={"media_bucket": "s3://bucket"})
        monkeypatch.setattr("stack.cli.media_cmd.settings", broken)

        result = runner.invoke(app, ["media", "stat", "a.txt"])

        assert result.exit_code == 2
