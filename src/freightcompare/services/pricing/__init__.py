"""Pure pricing functions: weights, tariff surcharges and vehicle slabs."""

from .slabs import apply_markup, heuristic_ftl_price, select_vehicles
from .surcharges import ChargeBreakdown, price_tariff, round_to_nearest
from .weights import normalize_box_units, resolve_weights, volumetric_divisor_for
