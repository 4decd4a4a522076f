from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from tourquote.core.enums import CostBasis, ServiceCategory


class DetectedService(BaseModel):
    """One billable line implied by an itinerary for a given day."""
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    day: int = Field(ge=1)
    description: str = Field(min_length=1)
    category: ServiceCategory = ServiceCategory.OTHER
    quantity: int = Field(default=1, ge=1)
    cost_basis: CostBasis
    location: Optional[str] = None
    notes: Optional[str] = None
