"""Exception taxonomy for quote computation.

Only ``InvalidShipment`` is fatal to a whole comparison. The other errors
exclude a single vendor or quote family and are logged by the caller.
"""

from __future__ import annotations


class FreightQuoteError(Exception):
    """Base class for all quote engine errors."""


class InvalidShipment(FreightQuoteError):
    """Box data cannot be priced (bad count, weight or dimensions)."""


class InvalidTariff(FreightQuoteError):
    """A vendor tariff is malformed (negative percentage or threshold)."""

    def __init__(self, message: str, vendor_id: str | None = None) -> None:
        super().__init__(message)
        self.vendor_id = vendor_id


class NoServiceableSlab(FreightQuoteError):
    """No vehicle slab covers the requested distance."""

    def __init__(self, distance_km: float) -> None:
        super().__init__(f"No vehicle slab serves a distance of {distance_km:.1f} km.")
        self.distance_km = distance_km


class RouteNotFound(FreightQuoteError):
    """The distance provider knows no road route between two pincodes."""

    def __init__(self, origin: str, destination: str) -> None:
        super().__init__(f"No road route between {origin} and {destination}.")
        self.origin = origin
        self.destination = destination


class ProviderUnavailable(FreightQuoteError):
    """A data provider failed transiently (network error, timeout, 5xx)."""
