# pricesync/storage/platform_cache.py

"""Process-wide cache of platform metadata."""

import logging
import threading

from pricesync.models.product import Platform
from pricesync.storage.price_store import PriceStore

logger = logging.getLogger("pricesync.cache")


class PlatformCache:
    """Platform metadata, read from the store at most once per refresh.

    Lifecycle:
    - empty until the first :meth:`get_all` (lazy load) or an
      explicit :meth:`refresh`;
    - the loaded list is replaced only by :meth:`refresh` and
      dropped only by :meth:`invalidate`;
    - callers receive copies, so the cached list is never mutated
      mid-run.
    """

    def __init__(self, store: PriceStore) -> None:
        self._store = store
        self._platforms: list[Platform] | None = None
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        """True once platform metadata has been read."""
        return self._platforms is not None

    def get_all(self) -> list[Platform]:
        """Return all platforms, loading them on first use."""
        with self._lock:
            if self._platforms is None:
                self._platforms = self._store.list_platforms()
                logger.debug(
                    "Loaded %d platforms into cache",
                    len(self._platforms),
                )
            return list(self._platforms)

    def get(self, platform_id: str) -> Platform | None:
        """Look up one platform by id."""
        for platform in self.get_all():
            if platform.id == platform_id:
                return platform
        return None

    def refresh(self) -> list[Platform]:
        """Reload platform metadata from the store."""
        with self._lock:
            self._platforms = self._store.list_platforms()
            logger.info(
                "Platform cache refreshed (%d platforms)",
                len(self._platforms),
            )
            return list(self._platforms)

    def invalidate(self) -> None:
        """Drop cached metadata; the next read reloads it."""
        with self._lock:
            self._platforms = None
        logger.debug("Platform cache invalidated")
