import pytest

from freightcompare.errors import InvalidShipment
from freightcompare.models.domain import ShipmentBox
from freightcompare.services.pricing.weights import (
    normalize_box_units,
    resolve_weights,
    volumetric_divisor_for,
)


def _box(count: int = 1, weight: float = 10.0, dims: tuple | None = (10.0, 10.0, 10.0), unit: str = "cm") -> ShipmentBox:
    length, width, height = dims if dims else (None, None, None)
    return ShipmentBox(count=count, weight=weight, length=length, width=width, height=height, dimension_unit=unit)


def test_actual_weight_dominates_volumetric():
    profile = resolve_weights([_box(count=2, weight=500, dims=(100, 100, 100))], 3500)

    assert profile.actual_weight == pytest.approx(1000)
    assert profile.volumetric_weight == pytest.approx(571.43, abs=0.01)
    assert profile.chargeable_weight == pytest.approx(1000)


def test_volumetric_weight_dominates_for_light_bulky_boxes():
    profile = resolve_weights([_box(count=3, weight=5, dims=(100, 50, 40))], 5000)

    assert profile.actual_weight == pytest.approx(15)
    assert profile.volumetric_weight == pytest.approx(120)
    assert profile.chargeable_weight == pytest.approx(120)


def test_chargeable_weight_is_exactly_the_max_of_both():
    shipments = [
        [_box(count=1, weight=1, dims=(1, 1, 1))],
        [_box(count=4, weight=12.5, dims=(60, 40, 30)), _box(count=1, weight=300, dims=None)],
        [_box(count=10, weight=0.5, dims=(120, 80, 90))],
        [_box(count=7, weight=22, dims=(35, 35, 35)), _box(count=2, weight=3, dims=(200, 20, 20))],
    ]
    for boxes in shipments:
        for divisor in (3500, 4000, 5000, 6000):
            profile = resolve_weights(boxes, divisor)
            assert profile.chargeable_weight >= profile.actual_weight
            assert profile.chargeable_weight >= profile.volumetric_weight
            assert profile.chargeable_weight == max(profile.actual_weight, profile.volumetric_weight)


def test_boxes_without_dimensions_have_no_volumetric_weight():
    profile = resolve_weights([_box(count=2, weight=40, dims=None)], 3500)

    assert profile.volumetric_weight == 0
    assert profile.chargeable_weight == pytest.approx(80)


def test_inches_are_converted_to_centimetres():
    box = normalize_box_units(_box(dims=(10, 20, 30), unit="in"))

    assert box.dimension_unit == "cm"
    assert box.length == pytest.approx(25.4)
    assert box.width == pytest.approx(50.8)
    assert box.height == pytest.approx(76.2)


def test_unnormalized_boxes_are_rejected():
    with pytest.raises(InvalidShipment):
        resolve_weights([_box(unit="in")], 3500)


@pytest.mark.parametrize(
    "box",
    [
        ShipmentBox(count=0, weight=10, length=10, width=10, height=10),
        ShipmentBox(count=-1, weight=10),
        ShipmentBox(count=1, weight=0),
        ShipmentBox(count=1, weight=-5),
        ShipmentBox(count=1, weight=5, length=-1, width=10, height=10),
        ShipmentBox(count=1, weight=float("inf")),
        ShipmentBox(count=1, weight=float("nan")),
        ShipmentBox(count=1, weight=5, length=float("inf"), width=10, height=10),
        ShipmentBox(count=1, weight=5, length=10, width=float("nan"), height=10),
        ShipmentBox(count=10, weight=1e308),
    ],
)
def test_invalid_boxes_raise(box: ShipmentBox):
    with pytest.raises(InvalidShipment):
        resolve_weights([box], 3500)


def test_dimensions_required_when_profile_demands_them():
    boxes = [_box(dims=None)]
    assert resolve_weights(boxes, 3500).chargeable_weight == pytest.approx(10)

    with pytest.raises(InvalidShipment):
        resolve_weights(boxes, 3500, require_dimensions=True)
    with pytest.raises(InvalidShipment):
        resolve_weights([_box(dims=(10, 0, 10))], 3500, require_dimensions=True)


def test_empty_shipment_is_invalid():
    with pytest.raises(InvalidShipment):
        resolve_weights([], 3500)


def test_volumetric_divisor_per_mode():
    assert volumetric_divisor_for("Air") == 5000
    assert volumetric_divisor_for("Road") == 3500
    assert volumetric_divisor_for("Rail") == 4000
    assert volumetric_divisor_for("Ship") == 6000
    with pytest.raises(InvalidShipment):
        volumetric_divisor_for("Pipeline")
