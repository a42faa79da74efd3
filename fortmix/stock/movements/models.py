from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from fortmix.database import Base
from fortmix.time_utils import utcnow


MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"
MOVEMENT_ADJ = "ADJ"


class StockMovement(Base):
    """Append-only ledger of stock changes."""

    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)

    product_id = Column(
        Integer,
        ForeignKey("products.id"),
        nullable=False,
        index=True
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id"),
        nullable=True
    )

    type = Column(String(3), nullable=False)   # IN, OUT, ADJ
    quantity = Column(Float, nullable=False)   # ADJ carries a signed delta
    reason = Column(String, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    product = relationship("Product")
    user = relationship("User")
