from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from tourquote.core.enums import CostBasis, Currency


class CatalogEntry(BaseModel):
    """A priced line item as seen by the matcher. Never mutated while quoting."""
    model_config = ConfigDict(frozen=True, from_attributes=True, use_enum_values=True)

    id: Optional[int] = None
    service_name: str = Field(min_length=1)
    category: Optional[str] = None
    route_name: Optional[str] = None
    location: Optional[str] = None
    cost_basis: CostBasis
    unit: Optional[str] = None
    unit_price: float = Field(ge=0)
    currency: Currency = Currency.EUR
    vehicle_type: Optional[str] = None
    passenger_capacity: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True


class CatalogEntryCreate(BaseModel):
    service_name: str = Field(min_length=1)
    category: Optional[str] = None
    route_name: Optional[str] = None
    location: Optional[str] = None
    cost_basis: CostBasis
    unit: Optional[str] = None
    unit_price: float = Field(ge=0)
    currency: Currency = Currency.EUR
    vehicle_type: Optional[str] = None
    passenger_capacity: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True


class CatalogEntryUpdate(BaseModel):
    service_name: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    route_name: Optional[str] = None
    location: Optional[str] = None
    cost_basis: Optional[CostBasis] = None
    unit: Optional[str] = None
    unit_price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[Currency] = None
    vehicle_type: Optional[str] = None
    passenger_capacity: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("service_name", "cost_basis", "unit_price", "currency", "is_active", mode="before")
    @classmethod
    def _not_null(cls, value, info):
        # omit a field to leave it unchanged; these columns cannot be cleared
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


class CatalogEntryOut(CatalogEntryCreate):
    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None


class CatalogFilter(BaseModel):
    """Optional narrowing of the catalog snapshot handed to the matcher."""
    service_name: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    currency: Optional[Currency] = None
    is_active: Optional[bool] = True


class ImportRowError(BaseModel):
    row: int
    error: str
    data: dict = Field(default_factory=dict)


class CatalogImportOut(BaseModel):
    id: int
    filename: str
    location: str
    status: str
    records_processed: int = 0
    records_failed: int = 0
    errors: list[ImportRowError] = Field(default_factory=list)
    created_at: datetime
    processed_at: Optional[datetime] = None
