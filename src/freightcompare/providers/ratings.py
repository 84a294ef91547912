"""Vendor rating lookup (display and ranking only, never pricing)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol

from ..config import settings
from ..models.domain import VendorRating


class RatingProvider(Protocol):
    def rating_for(self, vendor_id: str) -> Optional[VendorRating]:
        ...


def _rating_from_dict(data: Mapping[str, Any]) -> VendorRating:
    return VendorRating(
        average=float(data["average"]),
        total_count=int(data.get("total_count", 0)),
        breakdown_by_category={
            str(key): float(value) for key, value in (data.get("breakdown_by_category") or {}).items()
        },
    )


class StaticRatingProvider:
    def __init__(self, ratings: Mapping[str, VendorRating] | None = None) -> None:
        self._ratings = dict(ratings or {})

    @classmethod
    def from_file(cls, source: Path | None = None) -> "StaticRatingProvider":
        """Read the ``ratings`` section of the vendor directory file."""
        path = Path(source or settings.vendor_directory_file)
        payload = json.loads(path.read_text(encoding="utf-8"))
        ratings = {
            str(vendor_id): _rating_from_dict(row) for vendor_id, row in payload.get("ratings", {}).items()
        }
        return cls(ratings)

    def rating_for(self, vendor_id: str) -> Optional[VendorRating]:
        return self._ratings.get(vendor_id)
