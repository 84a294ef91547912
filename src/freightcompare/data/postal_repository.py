"""Postal rate card loader."""

from __future__ import annotations

import functools
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from ..config import settings


@dataclass(slots=True, frozen=True)
class PostalBand:
    min_km: float
    max_km: float
    rate_per_kg: float
    min_charges: float = 0.0

    def covers(self, distance_km: float) -> bool:
        return self.min_km <= distance_km <= self.max_km


@dataclass(slots=True, frozen=True)
class PostalRateCard:
    bands: tuple[PostalBand, ...]
    max_weight_kg: Optional[float] = None
    blocked_pincodes: frozenset[str] = frozenset()
    tariff: Mapping[str, Any] = field(default_factory=dict)

    def band_for(self, distance_km: float) -> Optional[PostalBand]:
        return next((band for band in self.bands if band.covers(distance_km)), None)

    def is_blocked(self, pincode: str) -> bool:
        return pincode.strip() in self.blocked_pincodes


@functools.lru_cache(maxsize=4)
def _load_cached(path: Path) -> PostalRateCard:
    if not path.exists():
        raise FileNotFoundError(f"Postal rate file not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    bands = []
    for row in payload.get("bands", []):
        min_km, max_km = (float(value) for value in row["distance_range_km"])
        bands.append(
            PostalBand(
                min_km=min_km,
                max_km=max_km,
                rate_per_kg=float(row["rate_per_kg"]),
                min_charges=float(row.get("min_charges", 0)),
            )
        )
    max_weight = payload.get("max_weight_kg")
    return PostalRateCard(
        bands=tuple(sorted(bands, key=lambda band: band.min_km)),
        max_weight_kg=float(max_weight) if max_weight is not None else None,
        blocked_pincodes=frozenset(str(pin).strip() for pin in payload.get("blocked_pincodes", [])),
        tariff=dict(payload.get("tariff", {})),
    )


def get_postal_rate_card(source: Path | None = None) -> PostalRateCard:
    return _load_cached(Path(source or settings.postal_rate_file))


def clear_postal_cache() -> None:
    _load_cached.cache_clear()
