"""Quote comparison request/response schemas."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ..models.domain import QuoteRequest, RankingCriteria, Route, ShipmentBox


class ShipmentBoxModel(BaseModel):
    count: int
    weight: float = Field(..., description="Weight of one box in kg.")
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    dimension_unit: Literal["cm", "in"] = "cm"

    def to_domain(self) -> ShipmentBox:
        return ShipmentBox(
            count=self.count,
            weight=self.weight,
            length=self.length,
            width=self.width,
            height=self.height,
            dimension_unit=self.dimension_unit,
        )


class CompareQuotesRequest(BaseModel):
    origin_pincode: str = Field(..., min_length=1)
    destination_pincode: str = Field(..., min_length=1)
    boxes: List[ShipmentBoxModel] = Field(..., min_length=1)
    mode: Literal["Road", "Rail", "Air", "Ship"] = "Road"
    invoice_value: Optional[float] = Field(default=None, ge=0)
    customer_id: Optional[str] = Field(default=None, description="Selects the customer's contracted vendors.")
    customer_email: Optional[str] = Field(default=None, description="Selects customer-specific classification rules.")
    sort_by: Literal["price", "time", "rating"] = "price"
    max_price: Optional[float] = Field(default=None, gt=0)
    max_time_days: Optional[int] = Field(default=None, ge=1)
    min_rating: Optional[float] = Field(default=None, ge=0, le=5)

    def to_domain(self) -> QuoteRequest:
        return QuoteRequest(
            route=Route(
                origin_pincode=self.origin_pincode.strip(),
                destination_pincode=self.destination_pincode.strip(),
            ),
            boxes=tuple(box.to_domain() for box in self.boxes),
            mode=self.mode,
            invoice_value=self.invoice_value,
            customer_id=self.customer_id,
        )

    def criteria(self, defaults: RankingCriteria) -> RankingCriteria:
        return RankingCriteria(
            sort_by=self.sort_by,
            max_price=self.max_price if self.max_price is not None else defaults.max_price,
            max_time_days=self.max_time_days if self.max_time_days is not None else defaults.max_time_days,
            min_rating=self.min_rating if self.min_rating is not None else defaults.min_rating,
        )


class QuoteModel(BaseModel):
    vendor_key: str
    vendor_id: Optional[str] = None
    company_name: str
    total_charges: float
    display_price: float
    estimated_time_days: Optional[int] = None
    source_tag: str
    is_tied_up: bool
    is_special_vendor: bool
    rating: Optional[float] = None
    is_hidden: bool = False
    is_estimate: bool = False
    is_fastest: bool = False
    is_best_value: bool = False
    breakdown: Dict[str, float] = Field(default_factory=dict)
    details: Dict[str, Any] = Field(default_factory=dict)


class WeightSummaryModel(BaseModel):
    actual_weight: float
    volumetric_weight: float
    chargeable_weight: float


class ComparisonResponse(BaseModel):
    tied_up: List[QuoteModel]
    available: List[QuoteModel]
    fastest: Optional[QuoteModel] = None
    best_value: List[QuoteModel]
    no_coverage: bool
    weights: WeightSummaryModel
    distance_km: Optional[float] = None
    cached: bool = False
    failed_sources: List[str] = Field(default_factory=list)
