from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from fortmix.database import Base
from fortmix.time_utils import utcnow


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    action = Column(String(20), nullable=False)   # LOGIN, CREATE, UPDATE, SALE, STOCK, IMPORT
    entity = Column(String(20), nullable=False)   # AUTH, PRODUCT, USER, SALES, STOCK
    details = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    user = relationship("User")
