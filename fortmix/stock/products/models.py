from sqlalchemy import Column, Integer, String, Float, DateTime
from fortmix.database import Base
from fortmix.time_utils import utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=True)

    price = Column(Float, nullable=False, default=0)
    cost_price = Column(Float, nullable=True, default=0)

    # No floor: overselling leaves a negative balance unless the shop disallows it
    stock_quantity = Column(Float, nullable=False, default=0)
    min_stock = Column(Float, nullable=False, default=0)
    unit = Column(String(10), nullable=False, default="UN")

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
