from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from fortmix.database import Base
from fortmix.time_utils import utcnow


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(
        Integer,
        ForeignKey("users.id"),
        nullable=True
    )
    total = Column(Float, nullable=False, default=0)
    payment_method = Column(String, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    items = relationship(
        "SaleItem",
        back_populates="sale",
        order_by="SaleItem.id"
    )

    user = relationship("User", back_populates="sales")


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(
        Integer,
        ForeignKey("sales.id"),
        nullable=False,
        index=True
    )
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Float, nullable=False)
    price = Column(Float, nullable=False)

    # historical cost at time of sale, never follows later product edits
    cost_price = Column(Float, nullable=True, default=0)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")
