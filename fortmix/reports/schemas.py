from typing import List

from pydantic import BaseModel

from fortmix.sales.schemas import SaleOut


class TopProduct(BaseModel):
    product_id: int
    name: str
    total_qty: float
    total_revenue: float


class ReportSummary(BaseModel):
    count: int
    total: float
    net_profit: float


class SalesReport(BaseModel):
    sales: List[SaleOut]
    topProducts: List[TopProduct]
    summary: ReportSummary
