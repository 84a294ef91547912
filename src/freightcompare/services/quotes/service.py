"""Quote orchestration: fan out to every source, join, then rank."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from dataclasses import asdict, dataclass, replace
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from ...config import settings
from ...data.postal_repository import PostalRateCard, get_postal_rate_card
from ...data.slab_repository import get_vehicle_slabs
from ...data.zone_repository import PincodeDirectory, get_pincode_directory
from ...errors import InvalidTariff, ProviderUnavailable, RouteNotFound
from ...models.domain import (
    Quote,
    QuoteRequest,
    RankedResult,
    RankingCriteria,
    Route,
    SortBy,
    VendorRecord,
    WeightProfile,
)
from ...models.slabs import VehicleSlab
from ...providers.distance import DistanceProvider, build_distance_provider
from ...providers.oda import OdaClassifier, StaticOdaClassifier
from ...providers.ratings import RatingProvider, StaticRatingProvider
from ...providers.vendors import JsonVendorDirectory, TariffProvider
from ..pricing.surcharges import round_to_nearest
from ..pricing.weights import normalize_box_units, resolve_weights, volumetric_divisor_for
from ..ranking.policy import resolve_policy
from ..ranking.ranker import rank_quotes
from .cache import CompareCache
from .sources import (
    SOURCE_FTL,
    SOURCE_POSTAL,
    SOURCE_PUBLIC,
    SOURCE_TIED_UP,
    QuoteContext,
    ftl_quotes,
    postal_quote,
    zone_rate_quote,
)

T = TypeVar("T")

DISPLAY_ROUNDING_STEP = 5

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class QuoteSet:
    """Per-source quotes of one request, before ranking."""

    by_source: dict[str, list[Quote]]
    weights: WeightProfile
    distance_km: Optional[float] = None
    failed_sources: tuple[str, ...] = ()

    @property
    def quote_count(self) -> int:
        return sum(len(quotes) for quotes in self.by_source.values())


@dataclass(slots=True)
class ComparisonResult:
    ranked: RankedResult
    weights: WeightProfile
    distance_km: Optional[float] = None
    reused: bool = False
    failed_sources: tuple[str, ...] = ()

    @property
    def no_coverage(self) -> bool:
        return self.ranked.is_empty


async def call_with_retry(
    factory: Callable[[], Awaitable[T]],
    *,
    label: str = "provider",
    max_retries: int | None = None,
    backoff_seconds: float | None = None,
) -> T:
    """Await ``factory()``, retrying on ``ProviderUnavailable``.

    Other errors propagate immediately.
    """
    retries = settings.provider_max_retries if max_retries is None else max_retries
    backoff = settings.provider_backoff_seconds if backoff_seconds is None else backoff_seconds
    attempt = 0
    while True:
        try:
            return await factory()
        except ProviderUnavailable as exc:
            attempt += 1
            if attempt > retries:
                logger.warning(f"{label} unavailable after {attempt} attempt(s): {exc}")
                raise
            wait_time = backoff * attempt
            logger.debug(f"{label} unavailable, retrying in {wait_time:.2f}s (attempt {attempt}/{retries})")
            await asyncio.sleep(wait_time)


def request_fingerprint(request: QuoteRequest) -> str:
    """Stable hash of everything that changes the computed quotes."""
    boxes = sorted(
        (json.dumps(asdict(box), sort_keys=True) for box in request.boxes),
    )
    payload = {
        "origin": request.route.origin_pincode.strip(),
        "destination": request.route.destination_pincode.strip(),
        "boxes": boxes,
        "mode": request.mode,
        "invoice_value": request.invoice_value,
        "customer_id": request.customer_id,
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def default_criteria(sort_by: SortBy = "price") -> RankingCriteria:
    return RankingCriteria(
        sort_by=sort_by,
        max_price=settings.default_max_price,
        max_time_days=settings.default_max_time_days,
        min_rating=settings.default_min_rating,
    )


def display_total(quote: Quote) -> float:
    """Price shown to the user. Contracted quotes, except special vendors, round to the nearest 5."""
    if quote.is_tied_up and not quote.is_special_vendor:
        return round_to_nearest(quote.total_charges, DISPLAY_ROUNDING_STEP)
    return quote.total_charges


class QuoteService:
    """Computes and ranks quotes for a shipment.

    Every collaborator is injectable; defaults read the bundled reference data.
    """

    def __init__(
        self,
        tariffs: TariffProvider | None = None,
        distances: DistanceProvider | None = None,
        oda: OdaClassifier | None = None,
        ratings: RatingProvider | None = None,
        slabs: Sequence[VehicleSlab] | None = None,
        postal_rates: PostalRateCard | None = None,
        directory: PincodeDirectory | None = None,
        cache: CompareCache | None = None,
    ) -> None:
        self.tariffs = tariffs or JsonVendorDirectory()
        self.distances = distances or build_distance_provider()
        self.directory = directory or get_pincode_directory()
        self.oda = oda or StaticOdaClassifier(self.directory.oda_pincodes)
        self.ratings = ratings or StaticRatingProvider.from_file()
        self.slabs = tuple(slabs) if slabs is not None else get_vehicle_slabs()
        self.postal_rates = postal_rates or get_postal_rate_card()
        self.cache = cache if cache is not None else CompareCache()

    async def _route_distance(self, route: Route) -> Optional[float]:
        try:
            return await call_with_retry(
                lambda: self.distances.distance_km(route.origin_pincode, route.destination_pincode),
                label="distance provider",
            )
        except RouteNotFound as exc:
            logger.info(f"{exc} Distance-priced quotes skipped.")
            return None

    async def _zone_rate_source(
        self,
        load_vendors: Callable[[], Awaitable[Sequence[VendorRecord]]],
        context: QuoteContext,
        *,
        source_tag: str,
        is_tied_up: bool,
    ) -> list[Quote]:
        vendors = await call_with_retry(load_vendors, label=f"{source_tag} vendor directory")

        def fetch_tariff(vendor: VendorRecord) -> Awaitable:
            return call_with_retry(
                lambda: self.tariffs.tariff_for(vendor.vendor_id),
                label=f"tariff for {vendor.vendor_id}",
            )

        tariffs = await asyncio.gather(*(fetch_tariff(vendor) for vendor in vendors), return_exceptions=True)

        quotes: list[Quote] = []
        for vendor, tariff in zip(vendors, tariffs):
            if isinstance(tariff, (InvalidTariff, ProviderUnavailable)):
                logger.warning(f"Skipping vendor '{vendor.company_name}' ({vendor.vendor_id}): {tariff}")
                continue
            if isinstance(tariff, BaseException):
                raise tariff
            try:
                quote = zone_rate_quote(
                    vendor,
                    tariff,
                    context,
                    self.directory,
                    self.oda,
                    self.ratings,
                    source_tag=source_tag,
                    is_tied_up=is_tied_up,
                )
            except InvalidTariff as exc:
                logger.warning(f"Skipping vendor '{vendor.company_name}' ({vendor.vendor_id}): {exc}")
                continue
            if quote is not None:
                quotes.append(quote)
        return quotes

    async def _ftl_source(self, context: QuoteContext, distance: Awaitable[Optional[float]]) -> list[Quote]:
        distance_km = await distance
        if distance_km is None:
            return []
        return ftl_quotes(replace(context, distance_km=distance_km), self.slabs, self.ratings)

    async def _postal_source(self, context: QuoteContext, distance: Awaitable[Optional[float]]) -> list[Quote]:
        distance_km = await distance
        if distance_km is None:
            return []
        quote = postal_quote(replace(context, distance_km=distance_km), self.postal_rates, self.ratings)
        return [quote] if quote is not None else []

    async def compute_quotes(self, request: QuoteRequest) -> QuoteSet:
        """Quotes from every source for one request.

        ``InvalidShipment`` propagates. Any other failure removes only the
        source it happened in.
        """
        boxes = tuple(normalize_box_units(box) for box in request.boxes)
        weights = resolve_weights(boxes, volumetric_divisor_for(request.mode))
        context = QuoteContext(
            route=request.route,
            weights=weights,
            mode=request.mode,
            invoice_value=request.invoice_value,
        )

        distance_task = asyncio.ensure_future(self._route_distance(request.route))
        sources = {
            SOURCE_TIED_UP: self._zone_rate_source(
                lambda: self.tariffs.contracted_vendors(request.customer_id or ""),
                context,
                source_tag=SOURCE_TIED_UP,
                is_tied_up=True,
            ),
            SOURCE_PUBLIC: self._zone_rate_source(
                self.tariffs.public_vendors,
                context,
                source_tag=SOURCE_PUBLIC,
                is_tied_up=False,
            ),
            SOURCE_FTL: self._ftl_source(context, distance_task),
            SOURCE_POSTAL: self._postal_source(context, distance_task),
        }
        distance_outcome, *outcomes = await asyncio.gather(distance_task, *sources.values(), return_exceptions=True)

        by_source: dict[str, list[Quote]] = {}
        failed: list[str] = []
        for source_tag, outcome in zip(sources, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"Quote source '{source_tag}' failed: {outcome}")
                failed.append(source_tag)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            by_source[source_tag] = outcome

        distance_km = float(distance_outcome) if isinstance(distance_outcome, (int, float)) else None
        quote_set = QuoteSet(
            by_source=by_source,
            weights=weights,
            distance_km=distance_km,
            failed_sources=tuple(failed),
        )
        logger.info(
            f"Computed {quote_set.quote_count} quotes for {request.route.origin_pincode}->"
            f"{request.route.destination_pincode} ({weights.chargeable_weight:.1f} kg, {request.mode})"
        )
        return quote_set

    async def compare(
        self,
        request: QuoteRequest,
        criteria: RankingCriteria | None = None,
        customer_email: str | None = None,
    ) -> ComparisonResult:
        """Compute (or reuse) the quotes for ``request`` and rank them for this caller."""
        key = request_fingerprint(request)
        quote_set, reused = await self.cache.get_or_compute(key, lambda: self.compute_quotes(request))
        ranked = rank_quotes(
            quote_set.by_source.values(),
            criteria or default_criteria(),
            resolve_policy(customer_email),
        )
        if ranked.is_empty:
            logger.info(f"No coverage for {request.route.origin_pincode}->{request.route.destination_pincode}")
        return ComparisonResult(
            ranked=ranked,
            weights=quote_set.weights,
            distance_km=quote_set.distance_km,
            reused=reused,
            failed_sources=quote_set.failed_sources,
        )

