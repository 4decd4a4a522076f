from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional
from tourquote.core.enums import (
    AccommodationMode,
    Currency,
    GroupCostMode,
    PricingProfile,
    ServiceCategory,
)
from tourquote.schemas.catalog import CatalogEntry
from tourquote.schemas.service import DetectedService

MATCH_THRESHOLD = 60


class PricingConfig(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    currency: Currency = Currency.EUR
    exchange_rate: float = Field(default=1.0, gt=0)
    tax_rate: float = Field(default=0.12, ge=0, le=1)
    markup_rate: float = Field(default=0.20, ge=0, le=1)
    rounding_increment: int = Field(default=50, ge=1)
    accommodation_mode: AccommodationMode = AccommodationMode.PER_PERSON
    occupancy: int = Field(default=2, ge=1)
    single_supplement: Optional[float] = Field(default=None, ge=0)
    profile: PricingProfile = PricingProfile.TICKETS_LUNCH
    group_cost_mode: GroupCostMode = GroupCostMode.SHARED


class MatchResult(BaseModel):
    service: DetectedService
    matched: bool
    price: Optional[float] = None
    currency: Optional[str] = None
    confidence: int = Field(default=0, ge=0, le=100)
    catalog_entry: Optional[CatalogEntry] = None
    hint: Optional[str] = None
    included: bool = True

    @model_validator(mode="after")
    def _check_match_fields(self):
        if self.matched:
            if self.confidence < MATCH_THRESHOLD:
                raise ValueError(f"matched results need confidence >= {MATCH_THRESHOLD}")
            if self.price is None:
                raise ValueError("matched results need a resolved price")
        else:
            if self.confidence >= MATCH_THRESHOLD:
                raise ValueError(f"unmatched results need confidence below {MATCH_THRESHOLD}")
            if self.catalog_entry is not None:
                raise ValueError("unmatched results cannot carry a catalog entry")
        return self


class DailyTotal(BaseModel):
    day: int
    net_total: float
    sell_total: float


class QuotationTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    net_per_person: float = 0.0
    tax_amount: float = 0.0
    markup_amount: float = 0.0
    sell_per_person: float = 0.0
    sell_per_group: float = 0.0
    per_group_net: float = 0.0
    currency: str = Currency.EUR.value
    daily_totals: list[DailyTotal] = Field(default_factory=list)


class PresentedTotals(BaseModel):
    """Totals converted by the exchange rate and rounded for display."""
    net_per_person: float
    tax_amount: float
    markup_amount: float
    sell_per_person: float
    sell_per_group: float
    currency: str
    rounding_increment: int
    daily_totals: list[DailyTotal] = Field(default_factory=list)


class DayServices(BaseModel):
    day: int
    label: str
    location: str
    services: list[MatchResult]


class CategoryTotal(BaseModel):
    category: ServiceCategory
    total: float
    count: int


class MissingPrice(BaseModel):
    day: int
    category: ServiceCategory
    description: str
    hint: str


class AnalysisSummary(BaseModel):
    total_days: int
    total_people: int
    cities: list[str]
    total_services: int
    services_with_prices: int
    services_without_prices: int
    completion_rate: float
    services_by_day: list[DayServices] = Field(default_factory=list)
    breakdown_by_category: list[CategoryTotal] = Field(default_factory=list)
    missing_prices: list[MissingPrice] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class QuoteRequest(BaseModel):
    services: list[DetectedService]
    num_people: int = Field(ge=1)
    num_days: Optional[int] = Field(default=None, ge=1)
    config: PricingConfig = Field(default_factory=PricingConfig)


class AnalyzeRequest(BaseModel):
    itinerary_text: str = Field(min_length=10)
    num_days: int = Field(ge=1, le=30)
    num_people: int = Field(ge=1, le=100)
    config: PricingConfig = Field(default_factory=PricingConfig)


class QuoteResponse(BaseModel):
    detected_services: list[DetectedService]
    matches: list[MatchResult]
    pricing_config: PricingConfig
    totals: QuotationTotals
    display: PresentedTotals
    analysis: AnalysisSummary
