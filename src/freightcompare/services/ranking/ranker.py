"""Merge, filter, order and tag quotes from every source.

``rank_quotes`` never raises on quote content: invalid quotes are dropped
and an empty result is a valid answer ("no coverage").
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import replace
from typing import Iterable, Optional, Sequence

from ...models.domain import Quote, RankedResult, RankingCriteria
from .policy import ClassificationPolicy, DefaultClassificationPolicy

BEST_VALUE_EPSILON = 0.01

_DIGIT_RUNS = re.compile(r"(\d+)")

logger = logging.getLogger(__name__)


def natural_key(name: str) -> tuple:
    """Case-insensitive, numeric-aware key: ``ABC2`` sorts before ``ABC10``."""
    parts = _DIGIT_RUNS.split(name.strip().lower())
    # re.split with a capture group alternates text/digits, text first.
    return tuple(int(part) if index % 2 else part for index, part in enumerate(parts))


def vendor_key(quote: Quote) -> str:
    """Identity used for deduplication: the quote's own key, else its vendor id or name."""
    if quote.vendor_key:
        return quote.vendor_key.strip().lower()
    if quote.vendor_id:
        return quote.vendor_id.strip().lower()
    return quote.company_name.strip().lower()


def normalize_eta(days: Optional[float]) -> Optional[int]:
    if days is None:
        return None
    try:
        value = float(days)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return max(1, math.ceil(value))


def quote_is_valid(quote: Quote) -> bool:
    if not quote.service_available:
        return False
    price = quote.total_charges
    return isinstance(price, (int, float)) and math.isfinite(price) and price > 0


def _passes(quote: Quote, criteria: RankingCriteria) -> bool:
    if quote.total_charges > criteria.max_price:
        return False
    if quote.estimated_time_days is not None and quote.estimated_time_days > criteria.max_time_days:
        return False
    return (quote.rating or 0.0) >= criteria.min_rating


def _tie_break(quote: Quote) -> tuple:
    eta = quote.estimated_time_days
    return (
        natural_key(quote.company_name),
        vendor_key(quote),
        quote.source_tag,
        eta is None,
        eta or 0,
        -(quote.rating or 0.0),
        quote.total_charges,
        quote.is_hidden,
    )


def _sort_key(quote: Quote, sort_by: str) -> tuple:
    eta = quote.estimated_time_days
    match sort_by:
        case "time":
            # Locked and unknown times go last.
            return (quote.is_hidden, eta is None, eta or 0, quote.total_charges, *_tie_break(quote))
        case "rating":
            return (-(quote.rating or 0.0), quote.total_charges, *_tie_break(quote))
        case _:
            return (quote.total_charges, *_tie_break(quote))


def _dedupe(quotes: Iterable[Quote], seen: set[str]) -> list[Quote]:
    unique: list[Quote] = []
    for quote in quotes:
        key = vendor_key(quote)
        if key in seen:
            continue
        seen.add(key)
        unique.append(quote)
    return unique


def rank_quotes(
    quotes_by_source: Iterable[Sequence[Quote]],
    criteria: RankingCriteria | None = None,
    policy: ClassificationPolicy | None = None,
) -> RankedResult:
    """Build the ranked comparison from per-source quote lists.

    Order of operations: drop invalid quotes, let ``policy`` collapse and then split
    tied-up/available, filter by ``criteria``, sort, deduplicate by vendor identity
    (tied-up first), then tag the fastest unlocked quote and every quote at
    the minimum price. Output order does not depend on input order.
    """
    criteria = criteria or RankingCriteria()
    policy = policy or DefaultClassificationPolicy()

    valid: list[Quote] = []
    dropped = 0
    for source in quotes_by_source:
        for quote in source:
            if not quote_is_valid(quote):
                dropped += 1
                continue
            valid.append(replace(quote, estimated_time_days=normalize_eta(quote.estimated_time_days)))
    if dropped:
        logger.debug(f"Dropped {dropped} quotes without a usable price")

    tied_up: list[Quote] = []
    available: list[Quote] = []
    for quote in policy.collapse(valid):
        is_tied_up = policy.is_tied_up(quote)
        if is_tied_up != quote.is_tied_up:
            quote = replace(quote, is_tied_up=is_tied_up)
        (tied_up if is_tied_up else available).append(quote)

    tied_up = sorted((q for q in tied_up if _passes(q, criteria)), key=lambda q: _sort_key(q, criteria.sort_by))
    available = sorted((q for q in available if _passes(q, criteria)), key=lambda q: _sort_key(q, criteria.sort_by))

    seen: set[str] = set()
    result = RankedResult(tied_up=_dedupe(tied_up, seen), available=_dedupe(available, seen))

    ordered = result.all_quotes()
    timed = [q for q in ordered if not q.is_hidden and q.estimated_time_days is not None]
    if timed:
        result.fastest = min(timed, key=lambda q: q.estimated_time_days)
    if ordered:
        lowest = min(q.total_charges for q in ordered)
        result.best_value = [q for q in ordered if abs(q.total_charges - lowest) < BEST_VALUE_EPSILON]
    return result
