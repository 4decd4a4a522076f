from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from tourquote.schemas.quote import MatchResult, PricingConfig, QuotationTotals
from tourquote.schemas.service import DetectedService


class QuotationCreate(BaseModel):
    title: Optional[str] = None
    itinerary_text: Optional[str] = None
    num_people: int = Field(ge=1)
    num_days: Optional[int] = Field(default=None, ge=1)
    detected_services: list[DetectedService]
    match_results: list[MatchResult]
    pricing_config: PricingConfig
    totals: QuotationTotals


class QuotationOut(QuotationCreate):
    id: int
    created_by: int
    created_at: datetime
    updated_at: Optional[datetime] = None
