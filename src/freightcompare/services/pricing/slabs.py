"""Vehicle slab selection for full-truck-load pricing."""

from __future__ import annotations

import logging
import math
from typing import Sequence

from ...errors import InvalidShipment, NoServiceableSlab
from ...models.slabs import SelectedVehicle, SlabSelection, VehicleSlab
from .surcharges import round_to_nearest

logger = logging.getLogger(__name__)

FALLBACK_MINIMUM_PRICE = 3000.0
FALLBACK_RATE_PER_KM = 25.0
FALLBACK_RATE_PER_KG = 2.0


def select_vehicles(
    chargeable_weight: float,
    distance_km: float,
    slabs: Sequence[VehicleSlab],
) -> SlabSelection:
    """Cover ``chargeable_weight`` with vehicles serving ``distance_km``.

    While the remaining load fits in some slab, the smallest such slab closes
    the allocation. Otherwise the largest slab is added and its capacity taken
    off the remainder. There is no cap on the number of vehicles.

    Raises ``NoServiceableSlab`` when no slab (or no price band of a chosen
    slab) covers the distance, and ``InvalidShipment`` for a non-finite weight.
    """
    candidates = sorted(
        (slab for slab in slabs if slab.serves(distance_km)),
        key=lambda slab: (slab.capacity_kg, slab.label),
    )
    if not candidates:
        raise NoServiceableSlab(distance_km)

    largest = candidates[-1]
    if largest.capacity_kg <= 0:
        raise NoServiceableSlab(distance_km)

    if not math.isfinite(chargeable_weight):
        raise InvalidShipment(f"Chargeable weight must be finite (got {chargeable_weight}).")

    counts: dict[str, int] = {}
    chosen: dict[str, VehicleSlab] = {}
    remaining = chargeable_weight
    if remaining > largest.capacity_kg:
        # Full loads of the largest slab in one step; the loop below closes the remainder.
        full_loads = math.ceil((remaining - largest.capacity_kg) / largest.capacity_kg)
        chosen[largest.label] = largest
        counts[largest.label] = full_loads
        remaining -= full_loads * largest.capacity_kg
    while remaining > 0:
        fitting = next((slab for slab in candidates if slab.capacity_kg >= remaining), None)
        slab = fitting or largest
        chosen.setdefault(slab.label, slab)
        counts[slab.label] = counts.get(slab.label, 0) + 1
        remaining -= slab.capacity_kg

    vehicles: list[SelectedVehicle] = []
    for label, count in counts.items():
        slab = chosen[label]
        price = slab.price_for(distance_km)
        if price is None:
            logger.warning(f"Slab '{label}' serves {distance_km:.1f} km but has no matching price band")
            raise NoServiceableSlab(distance_km)
        vehicles.append(SelectedVehicle(slab=slab, count=count, slab_price=price))

    # Largest vehicles first so labels read "2 x Eicher 19 ft + Tata Ace".
    vehicles.sort(key=lambda v: v.slab.capacity_kg, reverse=True)
    total = sum(vehicle.total_price for vehicle in vehicles)
    return SlabSelection(vehicles=vehicles, total_price=total)


def apply_markup(total_price: float, factor: float = 1.2, step: float = 10) -> float:
    """Derived partner price: ``total_price x factor`` rounded to ``step``."""
    return round_to_nearest(total_price * factor, step)


def heuristic_ftl_price(distance_km: float, chargeable_weight: float) -> float:
    """Last-resort linear estimate used when slab pricing is unavailable."""
    estimate = round(distance_km * FALLBACK_RATE_PER_KM + chargeable_weight * FALLBACK_RATE_PER_KG)
    return float(max(FALLBACK_MINIMUM_PRICE, estimate))


def vehicle_for_weight(chargeable_weight: float) -> tuple[str, str]:
    """Indicative vehicle label and length for heuristic quotes."""
    if chargeable_weight <= 1000:
        return "Tata Ace", "7 ft"
    if chargeable_weight <= 1500:
        return "Pickup", "8 ft"
    if chargeable_weight <= 2000:
        return "10 ft Truck", "10 ft"
    if chargeable_weight <= 4000:
        return "Eicher 14 ft", "14 ft"
    if chargeable_weight <= 7000:
        return "Eicher 19 ft", "19 ft"
    if chargeable_weight <= 10000:
        return "Eicher 20 ft", "20 ft"
    if chargeable_weight <= 18000:
        return "Container 32 ft MXL", "32 ft"
    return "Container 32 ft MXL + Additional Vehicle", "32 ft + Additional"
