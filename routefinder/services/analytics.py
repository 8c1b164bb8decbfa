"""
Usage analytics for route searches.

Counts searches per (origin, province, specialty) and summarises them as a
ranked list and an origin x province heatmap. Counters live in memory and are
optionally mirrored to a JSON file.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..models import HeatmapResponse, RouteQuery, UsageEntry

logger = logging.getLogger(__name__)

UsageKey = Tuple[str, str, str]


class UsageAnalytics:
    """Thread-safe search counters keyed by (origin, province, specialty)."""

    KEY_SEPARATOR = " | "
    TOP_N = 10

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._lock = threading.Lock()
        self._counts: Dict[UsageKey, int] = {}
        self._storage_path = storage_path
        self._load()

    @classmethod
    def format_key(cls, key: UsageKey) -> str:
        return cls.KEY_SEPARATOR.join(key)

    @staticmethod
    def parse_key(text: str) -> UsageKey:
        # Older keys were written without spaces around the separator
        parts = [part.strip() for part in text.split("|")]
        if len(parts) != 3:
            raise ValueError(f"Malformed usage key: {text!r}")
        return parts[0], parts[1], parts[2]

    def _load(self) -> None:
        if not self._storage_path or not self._storage_path.exists():
            return
        try:
            with open(self._storage_path, "r", encoding="utf-8") as f:
                stored = json.load(f)
            self._counts = {self.parse_key(key): int(count) for key, count in stored.items()}
            logger.info(f"Loaded {len(self._counts)} usage counter(s) from {self._storage_path}")
        except (json.JSONDecodeError, OSError, AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Failed to load usage analytics: {e}")
            self._counts = {}

    def _save(self, counts: Dict[UsageKey, int]) -> None:
        """Write ``counts`` to a sibling temp file, then move it over the stored file."""
        if not self._storage_path:
            return
        tmp_path: Optional[str] = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._storage_path.parent,
                prefix=f".{self._storage_path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = f.name
                json.dump({self.format_key(key): count for key, count in counts.items()}, f, indent=2)
            os.replace(tmp_path, self._storage_path)
        except OSError as e:
            logger.error(f"Failed to save usage analytics: {e}")
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def record(self, query: RouteQuery) -> int:
        """Count one search and return the new total for its key.

        The counter only advances once the new totals are stored.
        """
        key = query.usage_key
        with self._lock:
            count = self._counts.get(key, 0) + 1
            updated = dict(self._counts)
            updated[key] = count
            self._save(updated)
            self._counts = updated
        return count

    def entries(self) -> List[UsageEntry]:
        """All counters, most searched first."""
        with self._lock:
            items = sorted(self._counts.items(), key=lambda item: (-item[1], item[0]))
        return [
            UsageEntry(origin=origin, province=province, specialty=specialty, count=count)
            for (origin, province, specialty), count in items
        ]

    def top(self, n: int = TOP_N) -> List[UsageEntry]:
        return self.entries()[:n]

    def heatmap(self) -> HeatmapResponse:
        """Aggregate counts by origin x province across specialties."""
        counts: Dict[str, Dict[str, int]] = {}
        provinces = set()
        with self._lock:
            items = list(self._counts.items())
        for (origin, province, _specialty), count in items:
            row = counts.setdefault(origin, {})
            row[province] = row.get(province, 0) + count
            provinces.add(province)

        max_count = max((value for row in counts.values() for value in row.values()), default=0)
        return HeatmapResponse(
            origins=sorted(counts),
            provinces=sorted(provinces),
            counts=counts,
            maxCount=max(max_count, 1),
        )

    def clear(self) -> None:
        with self._lock:
            self._save({})
            self._counts = {}
        logger.info("Usage analytics cleared")

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "keys": len(self._counts),
                "searches": sum(self._counts.values()),
            }
