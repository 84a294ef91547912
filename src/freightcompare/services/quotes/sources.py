"""Quote builders for each vendor family.

The builders are synchronous and pure over the inputs they receive. Fetching
vendors, tariffs and distances is the job of ``QuoteService``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ...config import settings
from ...data.postal_repository import PostalRateCard
from ...data.zone_repository import PincodeDirectory
from ...errors import NoServiceableSlab
from ...models.domain import Quote, Route, VendorRecord, WeightProfile
from ...models.slabs import VehicleSlab
from ...models.tariff import TariffDefinition
from ...providers.oda import OdaClassifier
from ...providers.ratings import RatingProvider
from ..pricing.slabs import apply_markup, heuristic_ftl_price, select_vehicles, vehicle_for_weight
from ..pricing.surcharges import price_tariff
from ..ranking.ranker import normalize_eta

SOURCE_TIED_UP = "tied_up"
SOURCE_PUBLIC = "public"
SOURCE_FTL = "ftl"
SOURCE_POSTAL = "postal"

WHEELSEYE_FTL_ID = "wheelseye-ftl-transporter"
WHEELSEYE_FTL_NAME = "Wheelseye FTL"
LOCAL_FTL_ID = "local-ftl-transporter"
LOCAL_FTL_NAME = "LOCAL FTL"
INDIA_POST_ID = "india-post"
INDIA_POST_NAME = "India Post"

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class QuoteContext:
    route: Route
    weights: WeightProfile
    mode: str
    invoice_value: Optional[float] = None
    distance_km: Optional[float] = None


def identity_key(vendor_id: Optional[str], company_name: str) -> str:
    return (vendor_id or company_name).strip().lower()


def _weight_details(weights: WeightProfile) -> dict[str, float]:
    return {
        "actual_weight": weights.actual_weight,
        "volumetric_weight": weights.volumetric_weight,
        "chargeable_weight": weights.chargeable_weight,
    }


def _special_rating(ratings: RatingProvider, vendor_id: str) -> float:
    rating = ratings.rating_for(vendor_id)
    return rating.average if rating is not None else settings.special_vendor_default_rating


def zone_rate_quote(
    vendor: VendorRecord,
    tariff: TariffDefinition,
    context: QuoteContext,
    directory: PincodeDirectory,
    oda: OdaClassifier,
    ratings: RatingProvider,
    *,
    source_tag: str,
    is_tied_up: bool,
) -> Optional[Quote]:
    """Price one zone-rate vendor; ``None`` when it does not serve the zone pair.

    Raises ``InvalidTariff`` when the tariff fails validation.
    """
    origin = context.route.origin_pincode
    destination = context.route.destination_pincode
    origin_zone = directory.zone_for(origin)
    destination_zone = directory.zone_for(destination)
    if origin_zone is None or destination_zone is None:
        logger.debug(f"No zone mapping for {origin}->{destination}")
        return None

    unit_price = vendor.unit_price(origin_zone, destination_zone)
    if unit_price is None or unit_price <= 0:
        logger.debug(f"{vendor.company_name} does not serve {origin_zone}->{destination_zone}")
        return None

    is_oda_zone = oda.is_oda(destination) or destination.strip() in vendor.oda_pincodes
    breakdown = price_tariff(
        tariff,
        context.weights.chargeable_weight,
        unit_price,
        distance_km=context.distance_km,
        invoice_value=context.invoice_value,
        is_oda_zone=is_oda_zone,
    )
    rating = ratings.rating_for(vendor.vendor_id)
    return Quote(
        vendor_key=identity_key(vendor.vendor_id, vendor.company_name),
        vendor_id=vendor.vendor_id,
        company_name=vendor.company_name,
        total_charges=breakdown.total,
        estimated_time_days=normalize_eta(vendor.transit(origin_zone, destination_zone)),
        source_tag=source_tag,
        is_tied_up=is_tied_up,
        rating=rating.average if rating is not None else None,
        breakdown=breakdown.as_dict(),
        is_hidden=vendor.is_hidden,
        details={
            "origin_zone": origin_zone,
            "destination_zone": destination_zone,
            "unit_price": unit_price,
            "is_oda": is_oda_zone,
            **_weight_details(context.weights),
        },
    )


def _is_pincode(value: str) -> bool:
    value = value.strip()
    return len(value) == 6 and value.isdigit()


def ftl_quotes(
    context: QuoteContext,
    slabs: Sequence[VehicleSlab],
    ratings: RatingProvider,
) -> list[Quote]:
    """Partner FTL quote plus the derived local FTL quote.

    Light loads and malformed origin pincodes get no FTL offer. When no slab
    serves the distance a heuristic price is used, flagged ``is_estimate``.
    """
    chargeable = context.weights.chargeable_weight
    distance_km = context.distance_km
    if distance_km is None or not _is_pincode(context.route.origin_pincode):
        return []
    if chargeable < settings.ftl_min_weight_kg:
        logger.debug(f"Load of {chargeable:.1f} kg is below the FTL minimum")
        return []

    is_estimate = False
    try:
        selection = select_vehicles(chargeable, distance_km, slabs)
        partner_price = selection.total_price
        vehicle_details = {
            "vehicle": selection.vehicle_label,
            "vehicle_length": selection.vehicle_length_label,
            "total_vehicles": selection.total_vehicles,
            "vehicle_breakdown": [
                {"label": v.slab.label, "count": v.count, "slab_price": v.slab_price}
                for v in selection.vehicles
            ],
        }
    except NoServiceableSlab as exc:
        if not settings.ftl_heuristic_fallback:
            logger.warning(f"FTL quote skipped: {exc}")
            return []
        logger.warning(f"FTL slab pricing failed, using heuristic estimate: {exc}")
        is_estimate = True
        partner_price = heuristic_ftl_price(distance_km, chargeable)
        vehicle, length = vehicle_for_weight(chargeable)
        vehicle_details = {"vehicle": vehicle, "vehicle_length": length}

    local_price = apply_markup(partner_price, settings.ftl_markup_factor)
    eta = normalize_eta(distance_km / settings.ftl_km_per_day)
    details = {"distance_km": distance_km, **vehicle_details, **_weight_details(context.weights)}

    def build(vendor_id: str, name: str, price: float) -> Quote:
        return Quote(
            vendor_key=identity_key(vendor_id, name),
            vendor_id=vendor_id,
            company_name=name,
            total_charges=price,
            estimated_time_days=eta,
            source_tag=SOURCE_FTL,
            is_special_vendor=True,
            rating=_special_rating(ratings, vendor_id),
            breakdown={"base_freight": price, "total": price},
            is_estimate=is_estimate,
            details=details,
        )

    return [
        build(WHEELSEYE_FTL_ID, WHEELSEYE_FTL_NAME, partner_price),
        build(LOCAL_FTL_ID, LOCAL_FTL_NAME, local_price),
    ]


def postal_quote(
    context: QuoteContext,
    rate_card: PostalRateCard,
    ratings: RatingProvider,
) -> Optional[Quote]:
    distance_km = context.distance_km
    if distance_km is None:
        return None
    route = context.route
    if rate_card.is_blocked(route.origin_pincode) or rate_card.is_blocked(route.destination_pincode):
        logger.info(f"Postal service does not serve {route.origin_pincode}->{route.destination_pincode}")
        return None

    chargeable = context.weights.chargeable_weight
    if rate_card.max_weight_kg is not None and chargeable > rate_card.max_weight_kg:
        logger.debug(f"Load of {chargeable:.1f} kg exceeds the postal limit")
        return None
    band = rate_card.band_for(distance_km)
    if band is None:
        logger.debug(f"No postal band covers {distance_km:.1f} km")
        return None

    tariff = TariffDefinition.from_dict({**rate_card.tariff, "min_charges": band.min_charges}, vendor_id=INDIA_POST_ID)
    breakdown = price_tariff(
        tariff,
        chargeable,
        band.rate_per_kg,
        distance_km=distance_km,
        invoice_value=context.invoice_value,
    )
    return Quote(
        vendor_key=identity_key(INDIA_POST_ID, INDIA_POST_NAME),
        vendor_id=INDIA_POST_ID,
        company_name=INDIA_POST_NAME,
        total_charges=breakdown.total,
        estimated_time_days=normalize_eta(distance_km / settings.postal_km_per_day),
        source_tag=SOURCE_POSTAL,
        is_special_vendor=True,
        rating=_special_rating(ratings, INDIA_POST_ID),
        breakdown=breakdown.as_dict(),
        details={"distance_km": distance_km, "vehicle": "Postal Service", **_weight_details(context.weights)},
    )
