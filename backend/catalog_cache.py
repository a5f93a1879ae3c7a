"""
Catalog Cache

Keeps parsed manufacturer catalogs in memory so a quote does not reload a
price book on every request. Owned by whoever creates it (the API holds one
instance); the pricing engine only ever sees the catalog dict.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

from models import Catalog

logger = logging.getLogger(__name__)

CatalogLoader = Callable[[str], Optional[Catalog]]


class CatalogCache:
    """
    In-memory catalog cache with optional expiry.

    Args:
        ttl_seconds: Entry lifetime; 0 or less keeps entries until invalidated
        loader: Called with the manufacturer id on a miss; a non-empty result
            is stored and returned
    """

    def __init__(self, ttl_seconds: float = 300, loader: Optional[CatalogLoader] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.loader = loader
        self._clock = clock
        self._catalogs: Dict[str, Catalog] = {}
        self._timestamps: Dict[str, float] = {}
        self.hits = 0
        self.misses = 0

    def __contains__(self, manufacturer_id: str) -> bool:
        return manufacturer_id in self._catalogs and not self._expired(manufacturer_id)

    def __len__(self) -> int:
        return len(self._catalogs)

    def _expired(self, manufacturer_id: str) -> bool:
        if self.ttl_seconds <= 0:
            return False
        age = self._clock() - self._timestamps.get(manufacturer_id, 0)
        return age >= self.ttl_seconds

    def get(self, manufacturer_id: str) -> Optional[Catalog]:
        """Cached catalog for a manufacturer, loading it on a miss if possible."""
        if manufacturer_id in self._catalogs:
            if not self._expired(manufacturer_id):
                self.hits += 1
                logger.info(f"Catalog cache HIT for {manufacturer_id}")
                return self._catalogs[manufacturer_id]
            logger.info(f"Catalog cache EXPIRED for {manufacturer_id}")
            self._drop(manufacturer_id)

        self.misses += 1
        logger.info(f"Catalog cache MISS for {manufacturer_id}")
        if self.loader is None:
            return None

        catalog = self.loader(manufacturer_id)
        if catalog:
            self.put(manufacturer_id, catalog)
            return catalog
        return None

    def put(self, manufacturer_id: str, catalog: Catalog) -> None:
        self._catalogs[manufacturer_id] = catalog
        self._timestamps[manufacturer_id] = self._clock()
        logger.info(f"Cached catalog for {manufacturer_id} ({len(catalog)} SKUs)")

    def _drop(self, manufacturer_id: str) -> None:
        self._catalogs.pop(manufacturer_id, None)
        self._timestamps.pop(manufacturer_id, None)

    def invalidate(self, manufacturer_id: Optional[str] = None) -> None:
        """
        Forget one manufacturer's catalog, or every catalog when no id is given.
        Call after a catalog upload or edit.
        """
        if manufacturer_id is not None:
            self._drop(manufacturer_id)
            logger.info(f"Invalidated catalog cache for {manufacturer_id}")
        else:
            self._catalogs.clear()
            self._timestamps.clear()
            logger.info("Invalidated all cached catalogs")

    def stats(self) -> Dict[str, Any]:
        return {
            "cached_catalogs": len(self._catalogs),
            "total_skus": sum(len(c) for c in self._catalogs.values()),
            "hits": self.hits,
            "misses": self.misses,
            "oldest_entry": min(self._timestamps.values()) if self._timestamps else None,
            "newest_entry": max(self._timestamps.values()) if self._timestamps else None,
        }
