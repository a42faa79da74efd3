from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import update
from sqlalchemy.orm import Session

from fortmix.audit.service import log_audit
from fortmix.stock.movements import models, schemas
from fortmix.stock.movements.models import MOVEMENT_IN, StockMovement
from fortmix.stock.products.models import Product
from fortmix.users.models import User


MOVEMENT_LIST_LIMIT = 100


def change_stock(
    db: Session,
    product_id: int,
    delta: float,
    *,
    movement_type: str,
    quantity: float,
    user_id: Optional[int],
    reason: str,
    require_available: bool = False,
) -> bool:
    """
    Apply `delta` to a product's stock and stage the matching ledger row.

    The stock change is a single UPDATE ... SET stock_quantity = stock_quantity + :delta,
    so concurrent writers never lose each other's updates. With `require_available`
    the UPDATE only matches while the result stays >= 0.

    Returns False when no row matched (unknown product, or not enough stock).
    Nothing is committed here.
    """
    stmt = (
        update(Product)
        .where(Product.id == product_id)
        .values(stock_quantity=Product.stock_quantity + delta)
    )
    if require_available:
        stmt = stmt.where(Product.stock_quantity + delta >= 0)

    result = db.execute(stmt.execution_options(synchronize_session=False))
    if result.rowcount == 0:
        return False

    db.add(
        models.StockMovement(
            product_id=product_id,
            user_id=user_id,
            type=movement_type,
            quantity=quantity,
            reason=reason,
        )
    )
    return True


def create_movement(db: Session, movement: schemas.StockMovementCreate, user_id: int):
    """Manual stock entry (IN) or correction (ADJ), with its audit entry, in one transaction."""
    product = db.query(Product).filter(Product.id == movement.product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    delta = movement.quantity
    reason = movement.reason or ("Entrada manual" if movement.type == MOVEMENT_IN else "Ajuste manual")

    try:
        applied = change_stock(
            db,
            product.id,
            delta,
            movement_type=movement.type,
            quantity=movement.quantity,
            user_id=user_id,
            reason=reason,
        )
        if not applied:
            raise HTTPException(status_code=404, detail="Product not found")

        log_audit(
            db,
            user_id,
            "STOCK",
            "STOCK",
            f"Movimentação {movement.type}: {product.name} ({product.code}) {delta:+g}. {reason}",
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(product)
    return {"product_id": product.id, "stock_quantity": product.stock_quantity}


def list_movements(
    db: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = MOVEMENT_LIST_LIMIT,
):
    """
    Stock ledger, newest first, with product and user names attached.
    """
    query = (
        db.query(
            StockMovement,
            Product.name.label("product_name"),
            User.name.label("user_name"),
        )
        .join(Product, Product.id == StockMovement.product_id)
        .outerjoin(User, User.id == StockMovement.user_id)
    )

    # ✅ Apply date filter
    if start:
        query = query.filter(StockMovement.created_at >= start)
    if end:
        query = query.filter(StockMovement.created_at <= end)

    results = (
        query
        .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .limit(limit)
        .all()
    )

    return [
        {
            "id": m.id,
            "product_id": m.product_id,
            "product_name": product_name,
            "user_id": m.user_id,
            "user_name": user_name,
            "type": m.type,
            "quantity": m.quantity,
            "reason": m.reason,
            "created_at": m.created_at,
        }
        for m, product_name, user_name in results
    ]

