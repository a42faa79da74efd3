from typing import List, Optional

from fastapi import HTTPException
from loguru import logger
from sqlalchemy.orm import Session, joinedload

from fortmix.audit.service import log_audit
from fortmix.stock.movements.models import MOVEMENT_OUT
from fortmix.stock.movements.service import change_stock
from fortmix.stock.products.models import Product
from . import models, schemas


SALE_FAILED_DETAIL = "Could not process sale"


class SaleRecordingError(Exception):
    """A write inside the sale transaction did not apply."""


def compute_total(items: List[schemas.SaleItemData]) -> float:
    return round(sum(item.quantity * item.price for item in items), 2)


def check_total(sale_data: schemas.SaleCreate, tolerance: float) -> float:
    """
    Recompute the total from the lines; the client figure is only accepted
    when it agrees within `tolerance`.
    """
    computed = compute_total(sale_data.items)
    if abs(computed - sale_data.total) > tolerance:
        raise HTTPException(
            status_code=400,
            detail=f"Sale total {sale_data.total:.2f} does not match items total {computed:.2f}",
        )
    return computed


def record_sale(
    db: Session,
    sale_data: schemas.SaleCreate,
    user_id: int,
    *,
    allow_negative_stock: bool = True,
    total_tolerance: float = 0.01,
) -> models.Sale:
    """
    Record a finished sale in one transaction:
    header, one item per cart line (with the product's cost frozen now),
    stock decrement + OUT movement per line, and one audit entry.
    Either everything is committed or nothing is.
    """
    total = check_total(sale_data, total_tolerance)

    try:
        # 1️⃣ Sale header
        sale = models.Sale(
            user_id=user_id,
            total=total,
            payment_method=sale_data.payment_method,
        )
        db.add(sale)
        db.flush()  # ✅ get sale id without committing

        # 2️⃣ Lines, in cart order
        for item in sale_data.items:

            # 🔹 Atomic decrement + OUT movement
            applied = change_stock(
                db,
                item.id,
                -item.quantity,
                movement_type=MOVEMENT_OUT,
                quantity=item.quantity,
                user_id=user_id,
                reason=f"Venda #{sale.id}",
                require_available=not allow_negative_stock,
            )
            if not applied:
                exists = db.query(Product.id).filter(Product.id == item.id).first()
                if exists and not allow_negative_stock:
                    raise HTTPException(
                        status_code=409,
                        detail=f"Insufficient stock for product {item.id}",
                    )
                raise SaleRecordingError(f"Product {item.id} not found")

            # 🔹 Freeze cost price NOW (historical costing)
            cost_price = (
                db.query(Product.cost_price)
                .filter(Product.id == item.id)
                .scalar()
            )

            db.add(
                models.SaleItem(
                    sale_id=sale.id,
                    product_id=item.id,
                    quantity=item.quantity,
                    price=item.price,
                    cost_price=cost_price or 0,
                )
            )
            db.flush()  # keep line ids in cart order

        # 3️⃣ Audit
        log_audit(
            db,
            user_id,
            "SALE",
            "SALES",
            f"Venda realizada: ID #{sale.id}, Total R$ {total:.2f}",
        )

        db.commit()

    except HTTPException:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception(f"Sale by user {user_id} rolled back")
        raise HTTPException(status_code=500, detail=SALE_FAILED_DETAIL)

    logger.info(f"Sale #{sale.id} recorded: {len(sale_data.items)} item(s), total {total:.2f}")
    return sale


def get_sale(db: Session, sale_id: int) -> Optional[dict]:
    sale = (
        db.query(models.Sale)
        .options(
            joinedload(models.Sale.items).joinedload(models.SaleItem.product),
            joinedload(models.Sale.user),
        )
        .filter(models.Sale.id == sale_id)
        .first()
    )

    if not sale:
        return None

    return serialize_sale(sale)


def serialize_sale(sale: models.Sale) -> dict:
    return {
        "id": sale.id,
        "user_id": sale.user_id,
        "user_name": sale.user.name if sale.user else None,
        "total": sale.total,
        "payment_method": sale.payment_method,
        "created_at": sale.created_at,
        "items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_name": item.product.name if item.product else None,
                "quantity": item.quantity,
                "price": item.price,
                "cost_price": item.cost_price,
            }
            for item in sale.items
        ],
    }
