"""Tariff evaluation: base freight plus surcharges for one vendor."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields, replace

from ...errors import InvalidTariff
from ...models.tariff import (
    ExcessOda,
    LegacyOda,
    OdaRule,
    SwitchOda,
    TariffDefinition,
    VariableOrFixed,
)


@dataclass(slots=True, frozen=True)
class ChargeBreakdown:
    base_freight: float = 0.0
    effective_base_freight: float = 0.0
    docket: float = 0.0
    green_tax: float = 0.0
    dacc: float = 0.0
    misc: float = 0.0
    fuel: float = 0.0
    rov: float = 0.0
    insurance: float = 0.0
    first_mile: float = 0.0
    appointment: float = 0.0
    cod: float = 0.0
    handling: float = 0.0
    oda: float = 0.0
    invoice_value: float = 0.0
    total: float = 0.0

    def as_dict(self) -> dict[str, float]:
        return asdict(self)

    def rounded(self, step: float = 5) -> "ChargeBreakdown":
        """Copy with every amount rounded to ``step`` for display."""
        return replace(
            self, **{f.name: round_to_nearest(getattr(self, f.name), step) for f in fields(self)}
        )


def round_to_nearest(value: float, step: float = 5) -> float:
    # Halves round up, matching the display convention of the quote screens.
    if step <= 0:
        return value
    return float(math.floor(value / step + 0.5) * step)


def validate_tariff(tariff: TariffDefinition) -> None:
    percentages = {
        "fuel_pct": tariff.fuel_pct,
        "rov.variable_pct": tariff.rov.variable_pct,
        "insurance.variable_pct": tariff.insurance.variable_pct,
        "first_mile.variable_pct": tariff.first_mile.variable_pct,
        "appointment.variable_pct": tariff.appointment.variable_pct,
        "cod.variable_pct": tariff.cod.variable_pct,
        "handling.variable_pct": tariff.handling.variable_pct,
        "invoice.percentage": tariff.invoice.percentage,
    }
    thresholds = {"handling.threshold_weight": tariff.handling.threshold_weight}
    match tariff.oda:
        case LegacyOda(pct=pct):
            percentages["oda.pct"] = pct
        case SwitchOda(rate_per_kg=rate, threshold=threshold) | ExcessOda(rate_per_kg=rate, threshold=threshold):
            percentages["oda.rate_per_kg"] = rate
            thresholds["oda.threshold"] = threshold

    for name, value in {**percentages, **thresholds}.items():
        if value < 0:
            raise InvalidTariff(f"Tariff field {name} cannot be negative (got {value}).")


def _variable_or_fixed(charge: VariableOrFixed, base_freight: float) -> float:
    return max(charge.variable_pct / 100 * base_freight, charge.fixed_amount)


def oda_charge(rule: OdaRule | None, chargeable_weight: float) -> float:
    match rule:
        case None:
            return 0.0
        case LegacyOda(fixed=fixed, pct=pct):
            return fixed + chargeable_weight * (pct / 100)
        case SwitchOda(fixed=fixed, rate_per_kg=rate, threshold=threshold):
            # Inclusive lower branch: weight == threshold pays the fixed charge.
            if chargeable_weight <= threshold:
                return fixed
            return rate * chargeable_weight
        case ExcessOda(fixed=fixed, rate_per_kg=rate, threshold=threshold):
            return fixed + max(0.0, chargeable_weight - threshold) * rate
    raise InvalidTariff(f"Unsupported ODA rule {rule!r}.")


def price_tariff(
    tariff: TariffDefinition,
    chargeable_weight: float,
    unit_price: float,
    distance_km: float | None = None,
    invoice_value: float | None = None,
    is_oda_zone: bool = False,
) -> ChargeBreakdown:
    """Evaluate ``tariff`` for one shipment.

    Every term is additive except the minimum charge, which floors the base
    freight. ``distance_km`` is accepted for interface symmetry with the
    distance-priced carriers; zone tariffs do not read it.
    """
    validate_tariff(tariff)

    base_freight = unit_price * chargeable_weight
    effective_base = max(base_freight, tariff.min_charges)

    fuel = tariff.fuel_pct / 100 * base_freight
    if tariff.fuel_max > 0:
        fuel = min(fuel, tariff.fuel_max)

    rov = _variable_or_fixed(tariff.rov, base_freight)
    insurance = _variable_or_fixed(tariff.insurance, base_freight)
    first_mile = _variable_or_fixed(tariff.first_mile, base_freight)
    appointment = _variable_or_fixed(tariff.appointment, base_freight)
    cod = _variable_or_fixed(tariff.cod, base_freight)

    handling_rule = tariff.handling
    handling = handling_rule.fixed_amount + max(
        0.0, chargeable_weight - handling_rule.threshold_weight
    ) * (handling_rule.variable_pct / 100)

    oda = oda_charge(tariff.oda, chargeable_weight) if is_oda_zone else 0.0

    invoice_charge = 0.0
    if tariff.invoice.enabled:
        invoice_charge = max(
            tariff.invoice.percentage / 100 * (invoice_value or 0.0),
            tariff.invoice.minimum_amount,
        )

    total = (
        effective_base
        + tariff.docket
        + tariff.green_tax
        + tariff.dacc
        + tariff.misc
        + fuel
        + rov
        + insurance
        + first_mile
        + appointment
        + cod
        + handling
        + oda
        + invoice_charge
    )
    return ChargeBreakdown(
        base_freight=base_freight,
        effective_base_freight=effective_base,
        docket=tariff.docket,
        green_tax=tariff.green_tax,
        dacc=tariff.dacc,
        misc=tariff.misc,
        fuel=fuel,
        rov=rov,
        insurance=insurance,
        first_mile=first_mile,
        appointment=appointment,
        cod=cod,
        handling=handling,
        oda=oda,
        invoice_value=invoice_charge,
        total=total,
    )
