"""Tests for the scheme registry."""

from __future__ import annotations

import pytest

from stack.media.registry import SchemeRegistry
from stack.storage.local import LocalBlobStore


class TestSchemeRegistry:
    """Tests for SchemeRegistry."""

    def test_register_and_get(self, memory_store) -> None:
        registry = SchemeRegistry()

        assert registry.register("media", memory_store) is True
        assert registry.get("media") is memory_store
        assert "media" in registry
        assert len(registry) == 1

    def test_double_registration_keeps_first_binding(self, memory_store, tmp_path) -> None:
        """Registering a bound scheme fails and keeps the first store bound."""
        registry = SchemeRegistry()
        registry.register("media", memory_store)

        assert registry.register("media", LocalBlobStore(tmp_path)) is False
        assert registry.get("media") is memory_store

    def test_unregister(self, registry: SchemeRegistry) -> None:
        assert registry.unregister("media") is True
        assert registry.unregister("media") is False
        assert "media" not in registry

    def test_get_unknown_scheme(self) -> None:
        with pytest.raises(KeyError):
            SchemeRegistry().get("media")

    def test_match(self, registry: SchemeRegistry) -> None:
        """Only paths carrying a registered scheme followed by :// match."""
        assert registry.match("media://wp-content/uploads/a.jpg") == "media"
        assert registry.match("/var/www/wp-content/uploads/a.jpg") is None
        assert registry.match("mediafiles://a.jpg") is None
        assert registry.match("gs://bucket/a.jpg") is None

    def test_schemes_and_iteration(self, registry: SchemeRegistry, memory_store) -> None:
        registry.register("thumbs", memory_store)

        assert registry.schemes() == ["media", "thumbs"]
        assert list(registry) == ["media", "thumbs"]
