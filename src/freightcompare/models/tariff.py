"""Vendor tariff definitions.

The ODA rule is a tagged variant: each mode carries only the fields its
formula reads, so a per-kg rate can never be mistaken for a percentage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from ..errors import InvalidTariff


@dataclass(slots=True, frozen=True)
class VariableOrFixed:
    """Charge of ``max(variable_pct% x base freight, fixed_amount)``."""

    variable_pct: float = 0.0
    fixed_amount: float = 0.0


@dataclass(slots=True, frozen=True)
class HandlingRule:
    fixed_amount: float = 0.0
    variable_pct: float = 0.0
    threshold_weight: float = 0.0


@dataclass(slots=True, frozen=True)
class LegacyOda:
    fixed: float = 0.0
    pct: float = 0.0


@dataclass(slots=True, frozen=True)
class SwitchOda:
    fixed: float = 0.0
    rate_per_kg: float = 0.0
    threshold: float = 0.0


@dataclass(slots=True, frozen=True)
class ExcessOda:
    fixed: float = 0.0
    rate_per_kg: float = 0.0
    threshold: float = 0.0


OdaRule = Union[LegacyOda, SwitchOda, ExcessOda]


@dataclass(slots=True, frozen=True)
class InvoiceValueRule:
    enabled: bool = False
    percentage: float = 0.0
    minimum_amount: float = 0.0


@dataclass(slots=True, frozen=True)
class TariffDefinition:
    min_charges: float = 0.0
    docket: float = 0.0
    green_tax: float = 0.0
    dacc: float = 0.0
    misc: float = 0.0
    fuel_pct: float = 0.0
    fuel_max: float = 0.0
    rov: VariableOrFixed = field(default_factory=VariableOrFixed)
    insurance: VariableOrFixed = field(default_factory=VariableOrFixed)
    first_mile: VariableOrFixed = field(default_factory=VariableOrFixed)
    appointment: VariableOrFixed = field(default_factory=VariableOrFixed)
    cod: VariableOrFixed = field(default_factory=VariableOrFixed)
    handling: HandlingRule = field(default_factory=HandlingRule)
    oda: Optional[OdaRule] = None
    invoice: InvoiceValueRule = field(default_factory=InvoiceValueRule)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], vendor_id: str | None = None) -> "TariffDefinition":
        """Build a tariff from a vendor record; missing keys default to zero."""
        try:
            return cls(
                min_charges=_number(payload.get("min_charges")),
                docket=_number(payload.get("docket")),
                green_tax=_number(payload.get("green_tax")),
                dacc=_number(payload.get("dacc")),
                misc=_number(payload.get("misc")),
                fuel_pct=_number(payload.get("fuel_pct")),
                fuel_max=_number(payload.get("fuel_max")),
                rov=_variable_or_fixed(payload.get("rov")),
                insurance=_variable_or_fixed(payload.get("insurance")),
                first_mile=_variable_or_fixed(payload.get("first_mile")),
                appointment=_variable_or_fixed(payload.get("appointment")),
                cod=_variable_or_fixed(payload.get("cod")),
                handling=_handling(payload.get("handling")),
                oda=_oda_rule(payload.get("oda")),
                invoice=_invoice(payload.get("invoice")),
            )
        except (TypeError, ValueError) as exc:
            raise InvalidTariff(f"Malformed tariff: {exc}", vendor_id=vendor_id) from exc


def _number(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    return float(value)


def _variable_or_fixed(data: Optional[Mapping[str, Any]]) -> VariableOrFixed:
    data = data or {}
    return VariableOrFixed(
        variable_pct=_number(data.get("variable_pct", data.get("variable"))),
        fixed_amount=_number(data.get("fixed_amount", data.get("fixed"))),
    )


def _handling(data: Optional[Mapping[str, Any]]) -> HandlingRule:
    data = data or {}
    return HandlingRule(
        fixed_amount=_number(data.get("fixed_amount", data.get("fixed"))),
        variable_pct=_number(data.get("variable_pct", data.get("variable"))),
        threshold_weight=_number(data.get("threshold_weight", data.get("threshold"))),
    )


def _oda_rule(data: Optional[Mapping[str, Any]]) -> Optional[OdaRule]:
    if not data:
        return None
    mode = str(data.get("mode", "legacy")).strip().lower()
    fixed = _number(data.get("fixed"))
    # The stored "variable" is a percentage in legacy mode and a per-kg rate otherwise.
    variable = _number(data.get("variable"))
    threshold = _number(data.get("threshold"))
    match mode:
        case "legacy":
            return LegacyOda(fixed=fixed, pct=variable)
        case "switch":
            return SwitchOda(fixed=fixed, rate_per_kg=variable, threshold=threshold)
        case "excess":
            return ExcessOda(fixed=fixed, rate_per_kg=variable, threshold=threshold)
        case _:
            raise ValueError(f"unknown ODA mode '{mode}'")


def _invoice(data: Optional[Mapping[str, Any]]) -> InvoiceValueRule:
    data = data or {}
    return InvoiceValueRule(
        enabled=bool(data.get("enabled", False)),
        percentage=_number(data.get("percentage")),
        minimum_amount=_number(data.get("minimum_amount")),
    )
