from sqlalchemy import Column, String, Float, Boolean, Text, Enum
from tourquote.models.base import BaseModel
from tourquote.core.enums import CostBasis, Currency


class CatalogEntry(BaseModel):
    __tablename__ = "catalog_entries"

    service_name = Column(String(255), nullable=False, index=True)
    category = Column(String(120), index=True)
    route_name = Column(String(255))
    location = Column(String(120), index=True)
    cost_basis = Column(Enum(CostBasis, values_callable=lambda e: [m.value for m in e]), nullable=False)
    unit = Column(String(60))
    unit_price = Column(Float, nullable=False, default=0.0)
    currency = Column(Enum(Currency), nullable=False, default=Currency.EUR)
    vehicle_type = Column(String(80))
    passenger_capacity = Column(String(40))
    notes = Column(Text)
    # soft delete: entries referenced by quotations are never removed
    is_active = Column(Boolean, nullable=False, default=True, index=True)
