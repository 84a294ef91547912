import math
import random
from dataclasses import replace

import pytest

from freightcompare.models.domain import Quote, RankingCriteria
from freightcompare.services.ranking import policy as policy_module
from freightcompare.services.ranking.policy import (
    AllowListClassificationPolicy,
    AvailableOnlyPolicy,
    DefaultClassificationPolicy,
    resolve_policy,
)
from freightcompare.services.ranking.ranker import natural_key, normalize_eta, rank_quotes, vendor_key


def _quote(
    name: str,
    price: float,
    eta: int | None = 3,
    *,
    vendor_id: str | None = None,
    tied: bool = False,
    rating: float | None = 4.0,
    source: str = "public",
    hidden: bool = False,
    available: bool = True,
) -> Quote:
    return Quote(
        vendor_key=(vendor_id or name).lower(),
        vendor_id=vendor_id,
        company_name=name,
        total_charges=price,
        estimated_time_days=eta,
        source_tag=source,
        is_tied_up=tied,
        rating=rating,
        is_hidden=hidden,
        service_available=available,
    )


def _names(quotes: list[Quote]) -> list[str]:
    return [quote.company_name for quote in quotes]


def test_price_ties_use_natural_name_order():
    result = rank_quotes([[_quote("ABC10", 1000), _quote("ABC2", 1000)]])

    assert _names(result.available) == ["ABC2", "ABC10"]


def test_natural_key_is_numeric_aware_and_case_insensitive():
    names = ["Vendor 10", "vendor 9", "Vendor 100", "Alpha", "vendor 9a"]
    assert sorted(names, key=natural_key) == ["Alpha", "vendor 9", "vendor 9a", "Vendor 10", "Vendor 100"]


def test_invalid_quotes_are_dropped():
    quotes = [
        _quote("Zero", 0),
        _quote("Negative", -10),
        _quote("NaN", math.nan),
        _quote("Infinite", math.inf),
        _quote("Unavailable", 500, available=False),
        _quote("Valid", 500),
    ]
    result = rank_quotes([quotes])

    assert _names(result.available) == ["Valid"]


def test_split_follows_tied_up_flag_by_default():
    result = rank_quotes([[_quote("Contract", 900, tied=True, source="tied_up")], [_quote("Public", 800)]])

    assert _names(result.tied_up) == ["Contract"]
    assert _names(result.available) == ["Public"]


def test_filters_apply_price_time_and_rating_ceilings():
    quotes = [
        _quote("Cheap", 100, eta=10),
        _quote("Pricey", 5000, eta=2),
        _quote("Slow", 200, eta=40),
        _quote("Unrated", 300, eta=3, rating=None),
        _quote("Poor", 250, eta=3, rating=2.5),
    ]
    criteria = RankingCriteria(max_price=1000, max_time_days=30, min_rating=3)

    assert _names(rank_quotes([quotes], criteria).available) == ["Cheap"]
    assert "Unrated" in _names(rank_quotes([quotes], RankingCriteria()).available)


def test_sort_by_time_puts_hidden_and_unknown_last():
    quotes = [
        _quote("Locked", 100, eta=1, hidden=True),
        _quote("Unknown", 100, eta=None),
        _quote("Slow", 100, eta=5),
        _quote("Fast", 300, eta=2),
    ]
    result = rank_quotes([quotes], RankingCriteria(sort_by="time"))

    assert _names(result.available) == ["Fast", "Slow", "Unknown", "Locked"]


def test_sort_by_rating_is_descending():
    quotes = [_quote("Mid", 100, rating=3.5), _quote("Top", 900, rating=4.9), _quote("None", 50, rating=None)]
    result = rank_quotes([quotes], RankingCriteria(sort_by="rating"))

    assert _names(result.available) == ["Top", "Mid", "None"]


def test_duplicate_vendor_survives_once_with_tied_up_first():
    contracted = _quote("Safexpress", 1200, vendor_id="v-safe", tied=True, source="tied_up")
    public = _quote("Safexpress", 1100, vendor_id="v-safe", source="public")
    result = rank_quotes([[public], [contracted]])

    assert result.all_quotes() == [contracted]


def test_duplicate_names_without_ids_are_merged():
    result = rank_quotes([[_quote("TCI Freight", 700, source="public"), _quote(" tci freight ", 650, source="ftl")]])

    assert len(result.available) == 1
    assert result.available[0].total_charges == 650


def test_ranking_is_independent_of_input_order():
    quotes = [
        _quote("ABC10", 1000, eta=4),
        _quote("ABC2", 1000, eta=4),
        _quote("Blue Arrow", 950, eta=2, tied=True, source="tied_up"),
        _quote("DP World", 950, eta=5, vendor_id="v-dp"),
        _quote("Safexpress", 1200, eta=3, vendor_id="v-safe", tied=True, source="tied_up"),
        _quote("Safexpress", 1100, eta=3, vendor_id="v-safe", source="public"),
        _quote("LOCAL FTL", 22800, eta=2, vendor_id="local-ftl-transporter", source="ftl"),
        _quote("Unknown ETA", 1500, eta=None),
    ]
    rng = random.Random(7)
    for sort_by in ("price", "time", "rating"):
        criteria = RankingCriteria(sort_by=sort_by)
        expected = rank_quotes([quotes], criteria)
        for _ in range(25):
            shuffled = quotes[:]
            rng.shuffle(shuffled)
            split = rng.randint(0, len(shuffled))
            assert rank_quotes([shuffled[split:], shuffled[:split]], criteria) == expected


def test_fastest_skips_hidden_quotes():
    quotes = [_quote("Locked", 100, eta=1, hidden=True), _quote("Quick", 500, eta=2), _quote("Slow", 50, eta=6)]
    result = rank_quotes([quotes])

    assert result.fastest is not None
    assert result.fastest.company_name == "Quick"


def test_best_value_includes_every_tie_within_a_paisa():
    quotes = [_quote("A", 1000.004), _quote("B", 1000), _quote("C", 1000.02), _quote("D", 999.999, tied=True)]
    result = rank_quotes([quotes])

    assert sorted(_names(result.best_value)) == ["A", "B", "D"]


def test_empty_input_is_a_valid_result():
    result = rank_quotes([])

    assert result.is_empty
    assert result.fastest is None
    assert result.best_value == []


def test_estimated_days_are_whole_days_of_at_least_one():
    assert normalize_eta(0.2) == 1
    assert normalize_eta(2.1) == 3
    assert normalize_eta(0) == 1
    assert normalize_eta(None) is None
    assert normalize_eta(math.inf) is None


def test_vendor_key_prefers_internal_id():
    assert vendor_key(_quote("Safexpress", 1, vendor_id="V-1")) == "v-1"
    assert vendor_key(_quote("  Safexpress ", 1)) == "safexpress"


def test_allow_list_policy_overrides_contract_flag():
    allow = AllowListClassificationPolicy(["Safexpress", "TCI Freight"])
    quotes = [
        _quote("Blue Arrow", 900, tied=True, source="tied_up"),
        _quote("safexpress", 1000, source="public"),
        _quote("Other", 800),
    ]
    result = rank_quotes([quotes], policy=allow)

    assert _names(result.tied_up) == ["safexpress"]
    assert result.tied_up[0].is_tied_up
    assert _names(result.available) == ["Other", "Blue Arrow"]
    assert not any(quote.is_tied_up for quote in result.available)


def test_available_only_policy_moves_named_vendors():
    policy = AvailableOnlyPolicy(DefaultClassificationPolicy(), ["DP World"])
    result = rank_quotes([[_quote("DP World", 800, tied=True), _quote("Blue Arrow", 900, tied=True)]], policy=policy)

    assert _names(result.tied_up) == ["Blue Arrow"]
    assert _names(result.available) == ["DP World"]


def test_available_only_vendors_keep_their_cheapest_quote():
    policy = AvailableOnlyPolicy(DefaultClassificationPolicy(), ["DP World"])
    quotes = [
        _quote("DP World", 1200, vendor_id="dp1", tied=True),
        _quote(" dp world ", 900, vendor_id="dp2"),
        _quote("Safexpress", 1000, vendor_id="sx"),
    ]

    result = rank_quotes([quotes], policy=policy)
    reversed_result = rank_quotes([list(reversed(quotes))], policy=policy)

    assert [(q.vendor_id, q.total_charges) for q in result.available] == [("dp2", 900), ("sx", 1000)]
    assert result.available == reversed_result.available
    assert result.tied_up == []


def test_vendor_key_field_drives_deduplication():
    first = _quote("Gati", 700, vendor_id="g-1")
    same_vendor = replace(_quote("Gati Express", 650, vendor_id="g-2"), vendor_key="g-1")

    result = rank_quotes([[first], [same_vendor]])

    assert [(q.company_name, q.total_charges) for q in result.available] == [("Gati Express", 650)]
    assert vendor_key(same_vendor) == "g-1"


def test_resolve_policy_uses_configured_allow_lists(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(policy_module.settings, "tied_up_allow_lists", {"buyer@example.com": ("Safexpress",)})
    monkeypatch.setattr(policy_module.settings, "available_only_vendors", ("DP World",))

    special = resolve_policy("Buyer@Example.com")
    regular = resolve_policy("someone@example.com")

    contracted = _quote("Blue Arrow", 900, tied=True)
    public = _quote("Safexpress", 900)
    dp_world = _quote("DP World", 900, tied=True)
    assert not special.is_tied_up(contracted)
    assert special.is_tied_up(public)
    assert regular.is_tied_up(contracted)
    assert not regular.is_tied_up(public)
    assert not regular.is_tied_up(dp_world)
