import pytest

from freightcompare.data.postal_repository import PostalBand, PostalRateCard
from freightcompare.data.zone_repository import PincodeDirectory
from freightcompare.errors import InvalidTariff
from freightcompare.models.domain import Route, VendorRating, VendorRecord, WeightProfile
from freightcompare.models.slabs import PriceBand, VehicleSlab
from freightcompare.models.tariff import TariffDefinition
from freightcompare.providers.oda import StaticOdaClassifier
from freightcompare.providers.ratings import StaticRatingProvider
from freightcompare.services.quotes import sources
from freightcompare.services.quotes.sources import (
    INDIA_POST_ID,
    LOCAL_FTL_ID,
    WHEELSEYE_FTL_ID,
    QuoteContext,
    ftl_quotes,
    postal_quote,
    zone_rate_quote,
)

DIRECTORY = PincodeDirectory(zones={"11": "N1", "40": "W1", "560": "S1"}, centroids={})
SLABS = (
    VehicleSlab(
        label="Eicher 14 ft",
        length_ft=14,
        weight_range_kg=(0, 4000),
        distance_range_km=(0, 2000),
        price_table=(PriceBand(min_km=0, max_km=2000, price=20_000),),
    ),
)
POSTAL = PostalRateCard(
    bands=(PostalBand(min_km=0, max_km=2000, rate_per_kg=30, min_charges=100),),
    blocked_pincodes=frozenset({"560001"}),
)


def _context(weight: float = 1000, origin: str = "110001", destination: str = "400001", distance: float | None = 1000) -> QuoteContext:
    return QuoteContext(
        route=Route(origin_pincode=origin, destination_pincode=destination),
        weights=WeightProfile(actual_weight=weight, volumetric_weight=0, chargeable_weight=weight),
        mode="Road",
        distance_km=distance,
    )


def _vendor(vendor_id: str = "v-a", rate: float = 2.0, oda_pincodes: frozenset[str] = frozenset()) -> VendorRecord:
    return VendorRecord(
        vendor_id=vendor_id,
        company_name="Vendor A",
        zone_rates={"N1": {"W1": rate}},
        transit_days={"N1": {"W1": 3.5}},
        oda_pincodes=oda_pincodes,
    )


def test_zone_rate_quote_prices_through_the_tariff():
    ratings = StaticRatingProvider({"v-a": VendorRating(average=4.2, total_count=10)})
    quote = zone_rate_quote(
        _vendor(),
        TariffDefinition(min_charges=500, fuel_pct=10),
        _context(),
        DIRECTORY,
        StaticOdaClassifier([]),
        ratings,
        source_tag="public",
        is_tied_up=False,
    )

    assert quote is not None
    assert quote.total_charges == pytest.approx(2200)
    assert quote.estimated_time_days == 4
    assert quote.rating == 4.2
    assert quote.vendor_key == "v-a"
    assert quote.breakdown["fuel"] == pytest.approx(200)
    assert quote.details["origin_zone"] == "N1"
    assert quote.details["is_oda"] is False


def test_zone_rate_quote_applies_oda_for_listed_destinations():
    tariff = TariffDefinition.from_dict({"oda": {"mode": "excess", "fixed": 100, "variable": 5, "threshold": 200}})
    by_classifier = zone_rate_quote(
        _vendor(rate=1), tariff, _context(weight=300), DIRECTORY, StaticOdaClassifier(["400001"]),
        StaticRatingProvider(), source_tag="public", is_tied_up=False,
    )
    by_vendor = zone_rate_quote(
        _vendor(rate=1, oda_pincodes=frozenset({"400001"})), tariff, _context(weight=300), DIRECTORY,
        StaticOdaClassifier([]), StaticRatingProvider(), source_tag="public", is_tied_up=False,
    )

    assert by_classifier.breakdown["oda"] == pytest.approx(600)
    assert by_classifier.total_charges == pytest.approx(900)
    assert by_vendor.breakdown["oda"] == pytest.approx(600)


def test_zone_rate_quote_is_none_for_unserved_zones():
    args = (TariffDefinition(), DIRECTORY, StaticOdaClassifier([]), StaticRatingProvider())
    unmapped = _context(destination="999999")
    unserved = _context(destination="560001")

    assert zone_rate_quote(_vendor(), args[0], unmapped, *args[1:], source_tag="public", is_tied_up=False) is None
    assert zone_rate_quote(_vendor(), args[0], unserved, *args[1:], source_tag="public", is_tied_up=False) is None


def test_zone_rate_quote_raises_for_invalid_tariff():
    with pytest.raises(InvalidTariff):
        zone_rate_quote(
            _vendor(), TariffDefinition(fuel_pct=-1), _context(), DIRECTORY, StaticOdaClassifier([]),
            StaticRatingProvider(), source_tag="public", is_tied_up=False,
        )


def test_ftl_quotes_derive_local_price_from_partner_total():
    quotes = ftl_quotes(_context(), SLABS, StaticRatingProvider())

    by_id = {quote.vendor_id: quote for quote in quotes}
    assert by_id[WHEELSEYE_FTL_ID].total_charges == 20_000
    assert by_id[LOCAL_FTL_ID].total_charges == 24_000
    assert all(quote.estimated_time_days == 3 for quote in quotes)
    assert all(quote.is_special_vendor and not quote.is_estimate for quote in quotes)
    assert all(quote.rating == 4.6 for quote in quotes)
    assert by_id[WHEELSEYE_FTL_ID].details["vehicle"] == "Eicher 14 ft"


def test_ftl_quotes_fall_back_to_flagged_estimate():
    quotes = ftl_quotes(_context(distance=2500), SLABS, StaticRatingProvider())

    by_id = {quote.vendor_id: quote for quote in quotes}
    assert by_id[WHEELSEYE_FTL_ID].total_charges == 64_500
    assert by_id[LOCAL_FTL_ID].total_charges == 77_400
    assert all(quote.is_estimate for quote in quotes)


def test_ftl_fallback_can_be_disabled(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(sources.settings, "ftl_heuristic_fallback", False)

    assert ftl_quotes(_context(distance=2500), SLABS, StaticRatingProvider()) == []


def test_ftl_needs_heavy_load_and_six_digit_origin():
    assert ftl_quotes(_context(weight=499), SLABS, StaticRatingProvider()) == []
    assert ftl_quotes(_context(origin="11001"), SLABS, StaticRatingProvider()) == []
    assert len(ftl_quotes(_context(weight=500), SLABS, StaticRatingProvider())) == 2


def test_postal_quote_uses_distance_band():
    quote = postal_quote(_context(weight=10), POSTAL, StaticRatingProvider({INDIA_POST_ID: VendorRating(average=3.9)}))

    assert quote is not None
    assert quote.total_charges == pytest.approx(300)
    assert quote.estimated_time_days == 4
    assert quote.rating == 3.9


def test_postal_minimum_charge_applies():
    quote = postal_quote(_context(weight=1), POSTAL, StaticRatingProvider())

    assert quote.total_charges == 100


def test_postal_quote_skips_blocked_and_out_of_band_routes():
    limited = PostalRateCard(bands=POSTAL.bands, max_weight_kg=35)

    assert postal_quote(_context(destination="560001"), POSTAL, StaticRatingProvider()) is None
    assert postal_quote(_context(distance=2500), POSTAL, StaticRatingProvider()) is None
    assert postal_quote(_context(weight=40), limited, StaticRatingProvider()) is None
