from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from tourquote.models.base import BaseModel
from tourquote.core.enums import ImportStatus


class CatalogImport(BaseModel):
    __tablename__ = "catalog_imports"

    filename = Column(String(255), nullable=False)
    location = Column(String(120), nullable=False)
    status = Column(Enum(ImportStatus, values_callable=lambda e: [m.value for m in e]),
                    nullable=False, default=ImportStatus.PENDING)
    records_processed = Column(Integer, default=0)
    records_failed = Column(Integer, default=0)
    error_log = Column(Text, nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    uploaded_by = Column(ForeignKey("users.id"), nullable=False)
    uploader = relationship("User", backref="catalog_imports")
