from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from fortmix.database import Base
from fortmix.time_utils import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)  # hash, never the plain text
    name = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default="Salesperson")

    created_at = Column(DateTime, default=utcnow, nullable=False)

    sales = relationship("Sale", back_populates="user")
