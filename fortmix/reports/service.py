from datetime import datetime
from typing import Optional

import pandas as pd
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from fortmix.dashboard.service import net_profit, sales_summary
from fortmix.sales import models as sales_models
from fortmix.sales.service import serialize_sale
from fortmix.stock.products.models import Product


TOP_PRODUCTS_LIMIT = 10

EXPORT_COLUMNS = [
    "sale_id",
    "created_at",
    "user_name",
    "payment_method",
    "sale_total",
    "product_code",
    "product_name",
    "quantity",
    "price",
    "cost_price",
    "line_total",
]


def _date_filter(query, start: Optional[datetime], end: Optional[datetime]):
    if start is not None:
        query = query.filter(sales_models.Sale.created_at >= start)
    if end is not None:
        query = query.filter(sales_models.Sale.created_at <= end)
    return query


def list_sales(db: Session, start: Optional[datetime] = None, end: Optional[datetime] = None):
    """Sales in range, newest first, each with its items eagerly loaded."""
    query = (
        db.query(sales_models.Sale)
        .options(
            joinedload(sales_models.Sale.items).joinedload(sales_models.SaleItem.product),
            joinedload(sales_models.Sale.user),
        )
    )
    return (
        _date_filter(query, start, end)
        .order_by(sales_models.Sale.created_at.desc(), sales_models.Sale.id.desc())
        .all()
    )


def top_products(
    db: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = TOP_PRODUCTS_LIMIT,
):
    revenue = func.sum(sales_models.SaleItem.quantity * sales_models.SaleItem.price)

    query = (
        db.query(
            Product.id.label("product_id"),
            Product.name.label("name"),
            func.sum(sales_models.SaleItem.quantity).label("total_qty"),
            revenue.label("total_revenue"),
        )
        .select_from(sales_models.SaleItem)
        .join(sales_models.Sale, sales_models.Sale.id == sales_models.SaleItem.sale_id)
        .join(Product, Product.id == sales_models.SaleItem.product_id)
    )

    rows = (
        _date_filter(query, start, end)
        .group_by(Product.id, Product.name)
        .order_by(revenue.desc(), Product.id.asc())
        .limit(limit)
        .all()
    )

    return [
        {
            "product_id": row.product_id,
            "name": row.name,
            "total_qty": float(row.total_qty or 0),
            "total_revenue": round(float(row.total_revenue or 0), 2),
        }
        for row in rows
    ]


def sales_report(db: Session, start: Optional[datetime] = None, end: Optional[datetime] = None):
    sales = list_sales(db, start, end)
    summary = sales_summary(db, start, end)

    return {
        "sales": [serialize_sale(sale) for sale in sales],
        "topProducts": top_products(db, start, end),
        "summary": {
            "count": summary["count"],
            "total": summary["total"],
            "net_profit": net_profit(db, start, end),
        },
    }


def sales_report_csv(db: Session, start: Optional[datetime] = None, end: Optional[datetime] = None) -> str:
    """One CSV row per sold line, newest sale first."""
    rows = []
    for sale in list_sales(db, start, end):
        for item in sale.items:
            rows.append({
                "sale_id": sale.id,
                "created_at": sale.created_at.isoformat(sep=" ", timespec="seconds"),
                "user_name": sale.user.name if sale.user else None,
                "payment_method": sale.payment_method,
                "sale_total": sale.total,
                "product_code": item.product.code if item.product else None,
                "product_name": item.product.name if item.product else None,
                "quantity": item.quantity,
                "price": item.price,
                "cost_price": item.cost_price or 0,
                "line_total": round(item.quantity * item.price, 2),
            })

    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    return df.to_csv(index=False)
