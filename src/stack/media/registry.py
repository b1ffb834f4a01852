"""Scheme registry binding virtual schemes to blob stores."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from stack.storage.base import BlobStore

logger = logging.getLogger(__name__)


class SchemeRegistry:
    """Maps virtual scheme names (``media``) to the BlobStore serving them.

    The registry is an explicit object owned by the media storage
    controller and handed to every stream wrapper and filesystem facade
    that resolves virtual paths. A scheme is bound at most once; replacing
    a binding requires unregistering it first.
    """

    def __init__(self) -> None:
        self._stores: dict[str, BlobStore] = {}

    def register(self, scheme: str, store: BlobStore) -> bool:
        """Bind ``scheme`` to ``store``.

        Returns:
            True if registered, False if the scheme was already bound
        """
        if scheme in self._stores:
            logger.debug(f"Scheme '{scheme}://' is already registered")
            return False
        self._stores[scheme] = store
        logger.debug(f"Registered '{scheme}://' with {type(store).__name__}")
        return True

    def unregister(self, scheme: str) -> bool:
        """Remove the binding for ``scheme``.

        Returns:
            True if a binding was removed, False if none existed
        """
        if self._stores.pop(scheme, None) is None:
            return False
        logger.debug(f"Unregistered '{scheme}://'")
        return True

    def get(self, scheme: str) -> BlobStore:
        """Return the store bound to ``scheme``.

        Raises:
            KeyError: If the scheme is not registered
        """
        return self._stores[scheme]

    def schemes(self) -> list[str]:
        """Return the registered scheme names."""
        return list(self._stores)

    def match(self, path: str) -> str | None:
        """Return the registered scheme ``path`` is addressed with, if any."""
        for scheme in self._stores:
            if path.startswith(f"{scheme}://"):
                return scheme
        return None

    def __contains__(self, scheme: object) -> bool:
        return scheme in self._stores

    def __iter__(self) -> Iterator[str]:
        return iter(self._stores)

    def __len__(self) -> int:
        return len(self._stores)
