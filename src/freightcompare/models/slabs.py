"""Full-truck-load vehicle slab models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass(slots=True, frozen=True)
class PriceBand:
    min_km: float
    max_km: float
    price: float

    def covers(self, distance_km: float) -> bool:
        return self.min_km <= distance_km <= self.max_km


@dataclass(slots=True, frozen=True)
class VehicleSlab:
    label: str
    length_ft: float
    weight_range_kg: tuple[float, float]
    distance_range_km: tuple[float, float]
    price_table: tuple[PriceBand, ...]

    @property
    def capacity_kg(self) -> float:
        return self.weight_range_kg[1]

    def serves(self, distance_km: float) -> bool:
        low, high = self.distance_range_km
        return low <= distance_km <= high

    def price_for(self, distance_km: float) -> float | None:
        for band in self.price_table:
            if band.covers(distance_km):
                return band.price
        return None


@dataclass(slots=True, frozen=True)
class SelectedVehicle:
    slab: VehicleSlab
    count: int
    slab_price: float

    @property
    def total_price(self) -> float:
        return self.slab_price * self.count


@dataclass(slots=True, frozen=True)
class SlabSelection:
    vehicles: List[SelectedVehicle]
    total_price: float

    @property
    def total_vehicles(self) -> int:
        return sum(vehicle.count for vehicle in self.vehicles)

    @property
    def vehicle_label(self) -> str:
        """Human label such as ``2 x Eicher 19 ft + Tata Ace``."""
        return " + ".join(
            f"{v.count} x {v.slab.label}" if v.count > 1 else v.slab.label for v in self.vehicles
        )

    @property
    def vehicle_length_label(self) -> str:
        return " + ".join(
            f"{v.count} x {v.slab.length_ft:g} ft" if v.count > 1 else f"{v.slab.length_ft:g} ft"
            for v in self.vehicles
        )
