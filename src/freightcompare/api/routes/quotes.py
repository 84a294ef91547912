"""Quote comparison endpoints."""

from __future__ import annotations

import functools
import logging

from fastapi import APIRouter, HTTPException, status

from ...errors import InvalidShipment
from ...models.domain import Quote
from ...schemas.quotes import ComparisonResponse, CompareQuotesRequest, QuoteModel, WeightSummaryModel
from ...services.quotes.service import QuoteService, default_criteria, display_total

router = APIRouter(prefix="/quotes", tags=["quotes"])

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=1)
def get_quote_service() -> QuoteService:
    return QuoteService()


def _quote_model(quote: Quote, fastest: Quote | None, best_value: list[Quote]) -> QuoteModel:
    return QuoteModel(
        vendor_key=quote.vendor_key,
        vendor_id=quote.vendor_id,
        company_name=quote.company_name,
        total_charges=quote.total_charges,
        display_price=display_total(quote),
        estimated_time_days=quote.estimated_time_days,
        source_tag=quote.source_tag,
        is_tied_up=quote.is_tied_up,
        is_special_vendor=quote.is_special_vendor,
        rating=quote.rating,
        is_hidden=quote.is_hidden,
        is_estimate=quote.is_estimate,
        is_fastest=quote is fastest,
        is_best_value=any(quote is best for best in best_value),
        breakdown=dict(quote.breakdown),
        details=dict(quote.details),
    )


@router.post("/compare", response_model=ComparisonResponse, status_code=status.HTTP_200_OK)
async def compare_quotes(payload: CompareQuotesRequest) -> ComparisonResponse:
    service = get_quote_service()
    try:
        result = await service.compare(
            payload.to_domain(),
            payload.criteria(default_criteria(payload.sort_by)),
            customer_email=payload.customer_email,
        )
    except InvalidShipment as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    ranked = result.ranked

    def convert(quote: Quote) -> QuoteModel:
        return _quote_model(quote, ranked.fastest, ranked.best_value)

    return ComparisonResponse(
        tied_up=[convert(quote) for quote in ranked.tied_up],
        available=[convert(quote) for quote in ranked.available],
        fastest=convert(ranked.fastest) if ranked.fastest else None,
        best_value=[convert(quote) for quote in ranked.best_value],
        no_coverage=result.no_coverage,
        weights=WeightSummaryModel(
            actual_weight=result.weights.actual_weight,
            volumetric_weight=result.weights.volumetric_weight,
            chargeable_weight=result.weights.chargeable_weight,
        ),
        distance_km=result.distance_km,
        cached=result.reused,
        failed_sources=list(result.failed_sources),
    )
