"""Vehicle slab table loader for full-truck-load pricing."""

from __future__ import annotations

import functools
import json
from pathlib import Path
from typing import Any, Mapping

from ..config import settings
from ..models.slabs import PriceBand, VehicleSlab


def _range(value: Any, field_name: str) -> tuple[float, float]:
    low, high = (float(item) for item in value)
    if low > high:
        raise ValueError(f"Slab {field_name} lower bound {low} exceeds upper bound {high}.")
    return low, high


def _slab_from_dict(row: Mapping[str, Any]) -> VehicleSlab:
    bands = []
    for band in row.get("price_table", []):
        min_km, max_km = _range(band["distance_range_km"], "price band")
        bands.append(PriceBand(min_km=min_km, max_km=max_km, price=float(band["price"])))
    return VehicleSlab(
        label=str(row["label"]).strip(),
        length_ft=float(row["length_ft"]),
        weight_range_kg=_range(row["weight_range_kg"], "weight_range_kg"),
        distance_range_km=_range(row["distance_range_km"], "distance_range_km"),
        price_table=tuple(bands),
    )


@functools.lru_cache(maxsize=4)
def _load_cached(path: Path) -> tuple[VehicleSlab, ...]:
    if not path.exists():
        raise FileNotFoundError(f"Vehicle slab file not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    rows = payload.get("slabs") if isinstance(payload, dict) else payload
    if not rows:
        raise ValueError(f"Vehicle slab file '{path}' contains no slabs.")
    try:
        return tuple(_slab_from_dict(row) for row in rows)
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Malformed vehicle slab in '{path}': {exc}") from exc


def get_vehicle_slabs(source: Path | None = None) -> tuple[VehicleSlab, ...]:
    """Return the versioned slab table. Loaded once per path."""
    return _load_cached(Path(source or settings.vehicle_slab_file))


def clear_slab_cache() -> None:
    _load_cached.cache_clear()
