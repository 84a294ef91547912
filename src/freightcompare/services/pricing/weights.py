"""Actual, volumetric and chargeable weight of a shipment."""

from __future__ import annotations

import functools
import math
from dataclasses import replace
from typing import Sequence

from ...config import settings
from ...errors import InvalidShipment
from ...models.domain import ShipmentBox, WeightProfile

CM_PER_INCH = 2.54


def normalize_box_units(box: ShipmentBox) -> ShipmentBox:
    """Return the box with dimensions expressed in centimetres."""
    if box.dimension_unit == "cm":
        return box
    if box.dimension_unit != "in":
        raise InvalidShipment(f"Unsupported dimension unit '{box.dimension_unit}'.")

    def convert(value: float | None) -> float | None:
        return None if value is None else value * CM_PER_INCH

    return replace(
        box,
        length=convert(box.length),
        width=convert(box.width),
        height=convert(box.height),
        dimension_unit="cm",
    )


def volumetric_divisor_for(mode: str) -> float:
    try:
        return settings.volumetric_divisors[mode]
    except KeyError as exc:
        raise InvalidShipment(f"Unknown transport mode '{mode}'.") from exc


def _validate_box(index: int, box: ShipmentBox, require_dimensions: bool) -> None:
    if box.dimension_unit != "cm":
        raise InvalidShipment(f"Box {index}: dimensions must be normalized to centimetres first.")
    if box.count <= 0:
        raise InvalidShipment(f"Box {index}: count must be positive (got {box.count}).")
    if not math.isfinite(box.weight) or box.weight <= 0:
        raise InvalidShipment(f"Box {index}: weight must be positive (got {box.weight}).")
    for name in ("length", "width", "height"):
        value = getattr(box, name)
        if value is not None and not math.isfinite(value):
            raise InvalidShipment(f"Box {index}: {name} must be a finite number.")
        if value is not None and value < 0:
            raise InvalidShipment(f"Box {index}: {name} cannot be negative.")
        if require_dimensions and (value is None or value <= 0):
            raise InvalidShipment(f"Box {index}: {name} is required and must be positive.")


@functools.lru_cache(maxsize=256)
def _resolve_cached(
    boxes: tuple[ShipmentBox, ...], volumetric_divisor: float, require_dimensions: bool
) -> WeightProfile:
    if not boxes:
        raise InvalidShipment("Shipment has no boxes.")
    if volumetric_divisor <= 0:
        raise InvalidShipment("Volumetric divisor must be positive.")

    actual = 0.0
    volume_cm3 = 0.0
    for index, box in enumerate(boxes):
        _validate_box(index, box, require_dimensions)
        actual += box.weight * box.count
        if box.has_dimensions():
            volume_cm3 += box.length * box.width * box.height * box.count

    if not math.isfinite(actual) or not math.isfinite(volume_cm3):
        raise InvalidShipment("Shipment weight or volume is too large to price.")

    volumetric = volume_cm3 / volumetric_divisor
    return WeightProfile(
        actual_weight=actual,
        volumetric_weight=volumetric,
        chargeable_weight=max(actual, volumetric),
    )


def resolve_weights(
    boxes: Sequence[ShipmentBox],
    volumetric_divisor: float,
    *,
    require_dimensions: bool = False,
) -> WeightProfile:
    """Compute the weight profile of a shipment.

    Dimensions must already be in centimetres (see ``normalize_box_units``).
    Raises ``InvalidShipment`` on non-positive counts or weights, and on
    missing dimensions when ``require_dimensions`` is set.
    """
    return _resolve_cached(tuple(boxes), float(volumetric_divisor), require_dimensions)
