from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fortmix.time_utils import UtcDateTime


# ---------- Sale Item ----------
class SaleItemData(BaseModel):
    """One cart line as sent by the PDV screen (extra keys such as `name` are ignored)."""
    id: int                      # product id
    quantity: float = Field(..., gt=0)
    price: float = Field(..., ge=0)


class SaleItemOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    quantity: float
    price: float
    cost_price: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


# ---------- Sale ----------
class SaleCreate(BaseModel):
    items: List[SaleItemData] = Field(..., min_length=1)
    payment_method: str = Field(..., min_length=1)
    total: float = Field(..., ge=0)

    @field_validator("payment_method")
    @classmethod
    def strip_payment_method(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("payment_method must not be blank")
        return v


class SaleCreatedOut(BaseModel):
    id: int


class SaleOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    total: float
    payment_method: str
    created_at: UtcDateTime
    items: List[SaleItemOut] = []
