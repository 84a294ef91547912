"""Pincode to zone mapping and pincode centroids."""

from __future__ import annotations

import functools
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from ..config import settings


@dataclass(slots=True, frozen=True)
class PincodeDirectory:
    """Prefix-based zone lookup plus a centroid table for distance estimates."""

    zones: Mapping[str, str]
    centroids: Mapping[str, tuple[float, float]]
    oda_pincodes: frozenset[str] = frozenset()

    def zone_for(self, pincode: str) -> Optional[str]:
        """Zone of the longest matching pincode prefix, if any."""
        pin = pincode.strip()
        for length in range(len(pin), 0, -1):
            zone = self.zones.get(pin[:length])
            if zone:
                return zone
        return None

    def centroid_for(self, pincode: str) -> Optional[tuple[float, float]]:
        """Exact centroid, else the first known pincode sharing the longest prefix."""
        pin = pincode.strip()
        if pin in self.centroids:
            return self.centroids[pin]
        for length in range(len(pin) - 1, 1, -1):
            prefix = pin[:length]
            for known in sorted(self.centroids):
                if known.startswith(prefix):
                    return self.centroids[known]
        return None


@functools.lru_cache(maxsize=4)
def _load_cached(path: Path) -> PincodeDirectory:
    if not path.exists():
        raise FileNotFoundError(f"Pincode zone file not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    zones = {str(prefix).strip(): str(zone).strip() for prefix, zone in payload.get("zones", {}).items()}
    centroids = {
        str(pin).strip(): (float(coords[0]), float(coords[1]))
        for pin, coords in payload.get("centroids", {}).items()
    }
    oda_pincodes = frozenset(str(pin).strip() for pin in payload.get("oda_pincodes", []))
    return PincodeDirectory(zones=zones, centroids=centroids, oda_pincodes=oda_pincodes)


def get_pincode_directory(source: Path | None = None) -> PincodeDirectory:
    return _load_cached(Path(source or settings.pincode_zone_file))


def clear_zone_cache() -> None:
    _load_cached.cache_clear()
