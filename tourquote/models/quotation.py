from sqlalchemy import Column, String, Integer, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from tourquote.models.base import BaseModel


class Quotation(BaseModel):
    __tablename__ = "quotations"

    title = Column(String(255))
    itinerary_text = Column(Text)
    num_people = Column(Integer, nullable=False)
    num_days = Column(Integer)

    # serialized bundle, written once per save or reprice
    detected_services = Column(JSON, nullable=False)
    match_results = Column(JSON, nullable=False)
    pricing_config = Column(JSON, nullable=False)
    totals = Column(JSON, nullable=False)

    created_by = Column(ForeignKey("users.id"), nullable=False)
    creator = relationship("User", backref="quotations")
