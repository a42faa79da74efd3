from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from fortmix import time_utils
from fortmix.sales import models as sales_models
from fortmix.stock.products.models import Product


CHART_DAYS = 7


def _in_range(query, column, start: Optional[datetime], end: Optional[datetime]):
    if start is not None:
        query = query.filter(column >= start)
    if end is not None:
        query = query.filter(column <= end)
    return query


def sales_summary(db: Session, start: Optional[datetime], end: Optional[datetime]):
    """Count and revenue of sales within [start, end]."""
    query = db.query(
        func.count(sales_models.Sale.id),
        func.coalesce(func.sum(sales_models.Sale.total), 0),
    )
    count, total = _in_range(query, sales_models.Sale.created_at, start, end).one()
    return {"count": int(count or 0), "total": round(float(total or 0), 2)}


def net_profit(db: Session, start: Optional[datetime], end: Optional[datetime]) -> float:
    """
    Σ quantity × (price − cost_price) over sale items whose sale falls in range.
    Uses the prices frozen on each item, never the product's current prices.
    """
    margin = sales_models.SaleItem.quantity * (
        sales_models.SaleItem.price - func.coalesce(sales_models.SaleItem.cost_price, 0)
    )
    query = (
        db.query(func.coalesce(func.sum(margin), 0))
        .select_from(sales_models.SaleItem)
        .join(sales_models.Sale, sales_models.Sale.id == sales_models.SaleItem.sale_id)
    )
    value = _in_range(query, sales_models.Sale.created_at, start, end).scalar()
    return round(float(value or 0), 2)


def critical_stock_count(db: Session) -> int:
    """Products at or below their minimum stock, right now."""
    return (
        db.query(func.count(Product.id))
        .filter(Product.stock_quantity <= Product.min_stock)
        .scalar()
        or 0
    )


def daily_revenue(db: Session, tz, start: Optional[datetime], end: Optional[datetime]):
    """
    Revenue per local calendar day, ascending. Days without sales are omitted.
    """
    query = db.query(sales_models.Sale.created_at, sales_models.Sale.total)
    rows = (
        _in_range(query, sales_models.Sale.created_at, start, end)
        .order_by(sales_models.Sale.created_at.asc())
        .all()
    )

    per_day = {}
    for created_at, total in rows:
        day = time_utils.local_date(created_at, tz).isoformat()
        per_day[day] = per_day.get(day, 0) + float(total or 0)

    return [
        {"date": day, "total": round(total, 2)}
        for day, total in sorted(per_day.items())
    ]


def get_dashboard_stats(
    db: Session,
    tz,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
):
    """
    Dashboard figures.

    With a range (either bound given) every figure uses it.
    Without one: `today` is the current local day, `month` is net profit
    since the first of the month, and the chart covers the last 7 days.
    """
    if start is not None or end is not None:
        today_range = month_range = chart_range = (start, end)
    else:
        today_range = (time_utils.start_of_today(tz), time_utils.end_of_today(tz))
        month_range = (time_utils.start_of_month(tz), None)
        chart_range = (time_utils.days_ago_start(tz, CHART_DAYS - 1), None)

    return {
        "today": sales_summary(db, *today_range),
        "month": {"total": net_profit(db, *month_range)},
        "criticalStock": critical_stock_count(db),
        "chartData": daily_revenue(db, tz, *chart_range),
    }
