"""Road distance providers."""

from __future__ import annotations

import logging
import math
from typing import Any, Protocol

import httpx

from ..config import settings
from ..data.zone_repository import PincodeDirectory, get_pincode_directory
from ..errors import ProviderUnavailable, RouteNotFound

EARTH_RADIUS_KM = 6371.0

logger = logging.getLogger(__name__)


class DistanceProvider(Protocol):
    async def distance_km(self, origin_pincode: str, destination_pincode: str) -> float:
        ...


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def _extract_distance(data: Any) -> Any:
    if not isinstance(data, dict):
        return None
    for container in (data, data.get("data"), data.get("result")):
        if isinstance(container, dict) and "distanceKm" in container:
            return container["distanceKm"]
    return None


class HttpDistanceProvider:
    """Client for the road-distance service (``POST {origin, destination}`` -> ``{distanceKm}``).

    Network errors, timeouts and 5xx responses become ``ProviderUnavailable``;
    retrying is left to the caller. A 4xx answer or a missing/non-positive
    distance means the service knows no route.
    """

    def __init__(
        self,
        base_url: str | None = None,
        endpoint_path: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.distance_service_url
        if not self.base_url:
            raise ValueError("Distance service base URL is not configured.")
        self.endpoint_path = endpoint_path or settings.distance_endpoint_path
        self.timeout = timeout if timeout is not None else settings.distance_timeout_seconds
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=5.0),
            transport=self._transport,
        )

    async def distance_km(self, origin_pincode: str, destination_pincode: str) -> float:
        url = f"{self.base_url.rstrip('/')}{self.endpoint_path}"
        body = {"origin": origin_pincode, "destination": destination_pincode}
        try:
            async with self._get_client() as client:
                response = await client.post(url, json=body)
        except httpx.TimeoutException as exc:
            raise ProviderUnavailable(f"Distance service timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailable(f"Failed to reach distance service at {self.base_url}: {exc}") from exc

        if response.status_code == 429 or response.status_code >= 500:
            raise ProviderUnavailable(f"Distance service returned HTTP {response.status_code}.")
        if response.status_code >= 400:
            logger.debug(f"Distance service returned HTTP {response.status_code} for {origin_pincode}->{destination_pincode}")
            raise RouteNotFound(origin_pincode, destination_pincode)

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderUnavailable("Distance service returned a non-JSON body.") from exc

        distance = _extract_distance(data)
        if isinstance(distance, bool) or not isinstance(distance, (int, float)):
            raise RouteNotFound(origin_pincode, destination_pincode)
        if not math.isfinite(distance) or distance <= 0:
            raise RouteNotFound(origin_pincode, destination_pincode)
        return float(distance)


class HaversineDistanceProvider:
    """Estimate road distance from pincode centroids and a road factor."""

    def __init__(self, directory: PincodeDirectory | None = None, road_factor: float | None = None) -> None:
        self.directory = directory or get_pincode_directory()
        self.road_factor = road_factor if road_factor is not None else settings.road_distance_factor

    async def distance_km(self, origin_pincode: str, destination_pincode: str) -> float:
        origin = self.directory.centroid_for(origin_pincode)
        destination = self.directory.centroid_for(destination_pincode)
        if origin is None or destination is None:
            raise RouteNotFound(origin_pincode, destination_pincode)
        straight = haversine_km(origin[0], origin[1], destination[0], destination[1])
        # Same-centroid deliveries still travel; never report zero.
        return max(1.0, straight * self.road_factor)


class FallbackDistanceProvider:
    """Use ``primary`` and fall back to ``secondary`` when it is unavailable."""

    def __init__(self, primary: DistanceProvider, secondary: DistanceProvider) -> None:
        self.primary = primary
        self.secondary = secondary

    async def distance_km(self, origin_pincode: str, destination_pincode: str) -> float:
        try:
            return await self.primary.distance_km(origin_pincode, destination_pincode)
        except ProviderUnavailable as exc:
            logger.warning(f"Primary distance provider unavailable, using estimate: {exc}")
            return await self.secondary.distance_km(origin_pincode, destination_pincode)


def build_distance_provider() -> DistanceProvider:
    """HTTP service backed by centroid estimates when configured, estimates alone otherwise."""
    estimator = HaversineDistanceProvider()
    if settings.distance_service_url:
        return FallbackDistanceProvider(HttpDistanceProvider(), estimator)
    return estimator
