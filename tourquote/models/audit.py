from sqlalchemy import Column, String, Integer, ForeignKey
from sqlalchemy.orm import relationship
from tourquote.models.base import BaseModel

class Audit(BaseModel):
    __tablename__ = "audits"

    user_id = Column(ForeignKey("users.id"), nullable=False)

    user = relationship("User", backref="audit_logs")

    action = Column(String(64), nullable=False, index=True)
    resource_type = Column(String(64), nullable=True)
    resource_id = Column(Integer, nullable=True)
    payload_hash = Column(String(128), nullable=False)
