from typing import List

from pydantic import BaseModel


class PeriodSales(BaseModel):
    count: int
    total: float


class PeriodProfit(BaseModel):
    total: float


class ChartPoint(BaseModel):
    date: str
    total: float


class DashboardStats(BaseModel):
    today: PeriodSales
    month: PeriodProfit
    criticalStock: int
    chartData: List[ChartPoint]
