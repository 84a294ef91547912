"""Out-of-delivery-area classification."""

from __future__ import annotations

from typing import Iterable, Protocol

from ..data.zone_repository import get_pincode_directory


class OdaClassifier(Protocol):
    def is_oda(self, pincode: str) -> bool:
        ...


class StaticOdaClassifier:
    """ODA membership from a fixed pincode list."""

    def __init__(self, oda_pincodes: Iterable[str] | None = None) -> None:
        if oda_pincodes is None:
            oda_pincodes = get_pincode_directory().oda_pincodes
        self._pincodes = frozenset(pin.strip() for pin in oda_pincodes)

    def is_oda(self, pincode: str) -> bool:
        return pincode.strip() in self._pincodes
