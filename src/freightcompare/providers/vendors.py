"""Zone-rate vendor directory (tariffs and zone matrices)."""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path
from typing import Any, Mapping, Protocol, Sequence

from ..config import settings
from ..errors import InvalidTariff
from ..models.domain import VendorRecord
from ..models.tariff import TariffDefinition

logger = logging.getLogger(__name__)


class TariffProvider(Protocol):
    async def contracted_vendors(self, customer_id: str) -> Sequence[VendorRecord]:
        ...

    async def public_vendors(self) -> Sequence[VendorRecord]:
        ...

    async def tariff_for(self, vendor_id: str) -> TariffDefinition:
        ...


def _matrix(data: Mapping[str, Any] | None) -> dict[str, dict[str, float]]:
    return {
        str(origin).strip().upper(): {
            str(destination).strip().upper(): float(value)
            for destination, value in (row or {}).items()
            if value is not None
        }
        for origin, row in (data or {}).items()
    }


def _vendor_from_dict(row: Mapping[str, Any]) -> VendorRecord:
    customer_id = row.get("customer_id")
    return VendorRecord(
        vendor_id=str(row["vendor_id"]).strip(),
        company_name=str(row["company_name"]).strip(),
        zone_rates=_matrix(row.get("zone_rates")),
        transit_days=_matrix(row.get("transit_days")),
        tariff=dict(row.get("tariff") or {}),
        customer_id=str(customer_id).strip() if customer_id else None,
        oda_pincodes=frozenset(str(pin).strip() for pin in row.get("oda_pincodes") or []),
        is_hidden=bool(row.get("is_hidden", False)),
    )


@functools.lru_cache(maxsize=4)
def _load_vendors(path: Path) -> tuple[VendorRecord, ...]:
    if not path.exists():
        raise FileNotFoundError(f"Vendor directory not found: {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    vendors: list[VendorRecord] = []
    for row in payload.get("vendors", []):
        try:
            vendors.append(_vendor_from_dict(row))
        except (KeyError, TypeError, ValueError) as e:
            # Skip invalid rows but continue processing
            logger.warning(f"Skipping invalid vendor row: {e}")
    return tuple(vendors)


def clear_vendor_cache() -> None:
    _load_vendors.cache_clear()


class JsonVendorDirectory:
    """Read-only vendor directory backed by a JSON file or an explicit record list."""

    def __init__(
        self,
        source: Path | None = None,
        vendors: Sequence[VendorRecord] | None = None,
    ) -> None:
        if vendors is not None:
            self._vendors = tuple(vendors)
        else:
            self._vendors = _load_vendors(Path(source or settings.vendor_directory_file))
        self._by_id = {vendor.vendor_id: vendor for vendor in self._vendors}

    def __len__(self) -> int:
        return len(self._vendors)

    async def contracted_vendors(self, customer_id: str) -> list[VendorRecord]:
        if not customer_id:
            return []
        return [vendor for vendor in self._vendors if vendor.customer_id == customer_id]

    async def public_vendors(self) -> list[VendorRecord]:
        return [vendor for vendor in self._vendors if vendor.customer_id is None]

    async def tariff_for(self, vendor_id: str) -> TariffDefinition:
        vendor = self._by_id.get(vendor_id)
        if vendor is None:
            raise InvalidTariff(f"Unknown vendor '{vendor_id}'.", vendor_id=vendor_id)
        return TariffDefinition.from_dict(vendor.tariff, vendor_id=vendor_id)
