"""Domain models for shipments, quotes and ranking."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Optional

TransportMode = Literal["Road", "Rail", "Air", "Ship"]
SortBy = Literal["price", "time", "rating"]


@dataclass(slots=True, frozen=True)
class ShipmentBox:
    """A line of identical boxes in a shipment."""

    count: int
    weight: float
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    dimension_unit: Literal["cm", "in"] = "cm"

    def has_dimensions(self) -> bool:
        return None not in (self.length, self.width, self.height)


@dataclass(slots=True, frozen=True)
class WeightProfile:
    actual_weight: float
    volumetric_weight: float
    chargeable_weight: float


@dataclass(slots=True, frozen=True)
class Route:
    origin_pincode: str
    destination_pincode: str


@dataclass(slots=True, frozen=True)
class VendorRating:
    """Aggregated customer rating for a vendor, used for display and ranking only."""

    average: float
    total_count: int = 0
    breakdown_by_category: Mapping[str, float] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class VendorRecord:
    """Zone-rate vendor as supplied by the tariff provider.

    ``zone_rates`` and ``transit_days`` are origin-zone -> destination-zone
    matrices. ``tariff`` is the raw tariff document; it is parsed lazily so a
    malformed tariff only excludes this vendor.
    """

    vendor_id: str
    company_name: str
    zone_rates: Mapping[str, Mapping[str, float]]
    transit_days: Mapping[str, Mapping[str, float]] = field(default_factory=dict)
    tariff: Mapping[str, Any] = field(default_factory=dict)
    customer_id: Optional[str] = None
    oda_pincodes: frozenset[str] = frozenset()
    is_hidden: bool = False

    def unit_price(self, origin_zone: str, destination_zone: str) -> Optional[float]:
        return self.zone_rates.get(origin_zone, {}).get(destination_zone)

    def transit(self, origin_zone: str, destination_zone: str) -> Optional[float]:
        return self.transit_days.get(origin_zone, {}).get(destination_zone)


@dataclass(slots=True, frozen=True)
class Quote:
    """One vendor's price/time offer for a single calculation request.

    ``total_charges`` is the unrounded total and is the only value used for
    ranking.
    """

    vendor_key: str
    company_name: str
    total_charges: float
    estimated_time_days: Optional[int]
    source_tag: str
    vendor_id: Optional[str] = None
    is_tied_up: bool = False
    is_special_vendor: bool = False
    rating: Optional[float] = None
    breakdown: Mapping[str, float] = field(default_factory=dict)
    is_hidden: bool = False
    is_estimate: bool = False
    service_available: bool = True
    details: Mapping[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class RankingCriteria:
    sort_by: SortBy = "price"
    max_price: float = float("inf")
    max_time_days: float = float("inf")
    min_rating: float = 0.0


@dataclass(slots=True)
class RankedResult:
    tied_up: list[Quote]
    available: list[Quote]
    fastest: Optional[Quote] = None
    best_value: list[Quote] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.tied_up and not self.available

    def all_quotes(self) -> list[Quote]:
        return [*self.tied_up, *self.available]


@dataclass(slots=True, frozen=True)
class QuoteRequest:
    """Everything needed to price one shipment; ``customer_id`` selects contracted vendors."""

    route: Route
    boxes: tuple[ShipmentBox, ...]
    mode: TransportMode = "Road"
    invoice_value: Optional[float] = None
    customer_id: Optional[str] = None
