from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from fortmix.time_utils import UtcDateTime


class StockMovementCreate(BaseModel):
    """
    Manual movement. OUT is reserved for sales.
    IN: quantity > 0 is added to stock.
    ADJ: quantity is a signed, non-zero correction.
    """
    product_id: int
    type: Literal["IN", "ADJ"]
    quantity: float
    reason: Optional[str] = Field(None, max_length=255)

    @model_validator(mode="after")
    def check_quantity(self):
        if self.type == "IN" and self.quantity <= 0:
            raise ValueError("IN quantity must be greater than zero")
        if self.type == "ADJ" and self.quantity == 0:
            raise ValueError("ADJ quantity must not be zero")
        return self


class StockMovementOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    type: str
    quantity: float
    reason: Optional[str] = None
    created_at: UtcDateTime


class StockMovementResult(BaseModel):
    product_id: int
    stock_quantity: float
