from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fortmix.time_utils import UtcDateTime


# -------------------------------
# Base
# -------------------------------
class ProductBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1)
    category: Optional[str] = None
    price: float = Field(..., ge=0)
    cost_price: Optional[float] = Field(0, ge=0)
    stock_quantity: Optional[float] = 0
    min_stock: Optional[float] = Field(0, ge=0)
    unit: Optional[str] = "UN"

    @field_validator("code", "name")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


# -------------------------------
# Create / Update (full replace, as sent by the product form)
# -------------------------------
class ProductCreate(ProductBase):
    pass


class ProductUpdate(ProductBase):
    # omitted by the edit form: stock stays as it is
    stock_quantity: Optional[float] = None


# -------------------------------
# Output
# -------------------------------
class ProductOut(BaseModel):
    id: int
    code: str
    name: str
    category: Optional[str] = None
    price: float
    cost_price: Optional[float] = None
    stock_quantity: float
    min_stock: float
    unit: str
    created_at: Optional[UtcDateTime] = None
    updated_at: Optional[UtcDateTime] = None

    model_config = ConfigDict(from_attributes=True)


class ProductCreatedOut(BaseModel):
    id: int


class ProductImportOut(BaseModel):
    created: int
    skipped: int
