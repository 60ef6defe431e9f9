"""Per-user cache of generated charts.

Entries are keyed by an opaque user id and remember the fingerprint of the
birth details and settings they were generated from. A lookup with a
different fingerprint is a miss and drops the stale entry, so editing a
profile's birth details can never serve an outdated chart.
"""
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Hashable, Optional, Tuple

from kundali_core.models import BirthDetails, ChartSettings, KundaliData

logger = logging.getLogger(__name__)

Fingerprint = Tuple[BirthDetails, ChartSettings]


class ChartCache:
    """Thread-safe bounded LRU of user id -> (fingerprint, chart)."""

    def __init__(self, max_entries: int = 256):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, Tuple[Hashable, KundaliData]]" = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def fingerprint(birth: BirthDetails, settings: ChartSettings) -> Fingerprint:
        return (birth, settings)

    def get(self, user_id: str, birth: BirthDetails, settings: ChartSettings) -> Optional[KundaliData]:
        key = self.fingerprint(birth, settings)
        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return None
            if entry[0] != key:
                del self._entries[user_id]
                logger.info("chart_cache.invalidated", extra={"user_id": user_id, "reason": "changed"})
                return None
            self._entries.move_to_end(user_id)
            return entry[1]

    def put(self, user_id: str, kundali: KundaliData) -> None:
        key = self.fingerprint(kundali.birth, kundali.settings)
        with self._lock:
            self._entries[user_id] = (key, kundali)
            self._entries.move_to_end(user_id)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("chart_cache.evicted", extra={"user_id": evicted})

    def invalidate(self, user_id: str) -> bool:
        with self._lock:
            removed = self._entries.pop(user_id, None) is not None
        if removed:
            logger.info("chart_cache.invalidated", extra={"user_id": user_id, "reason": "explicit"})
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, user_id: object) -> bool:
        with self._lock:
            return user_id in self._entries
