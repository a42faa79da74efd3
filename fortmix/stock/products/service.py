from typing import Optional

import pandas as pd
from fastapi import HTTPException, UploadFile
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fortmix.audit.service import log_audit
from fortmix.stock.movements.models import MOVEMENT_ADJ, MOVEMENT_IN
from fortmix.stock.movements.service import change_stock
from fortmix.stock.products import models, schemas
from .models import Product


DUPLICATE_CODE_DETAIL = "Error creating product (duplicate code?)"


def get_products(db: Session):
    return db.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()


def get_product_by_id(db: Session, product_id: int) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()


def get_product_by_code(db: Session, code: str) -> Optional[Product]:
    return db.query(Product).filter(Product.code == code.strip()).first()


def _opening_stock(db: Session, product: Product, quantity: float, user_id: Optional[int]):
    # Opening balance goes through the ledger like any other stock change
    movement_type = MOVEMENT_IN if quantity > 0 else MOVEMENT_ADJ
    change_stock(
        db,
        product.id,
        quantity,
        movement_type=movement_type,
        quantity=quantity,
        user_id=user_id,
        reason="Estoque inicial",
    )


def create_product(db: Session, product: schemas.ProductCreate, user_id: int) -> Product:

    # 1️⃣ Duplicate check (code)
    if get_product_by_code(db, product.code):
        raise HTTPException(status_code=400, detail=DUPLICATE_CODE_DETAIL)

    try:
        # 2️⃣ Create product with zero stock
        db_product = models.Product(
            code=product.code,
            name=product.name,
            category=product.category.strip() if product.category else None,
            price=product.price,
            cost_price=product.cost_price or 0,
            stock_quantity=0,
            min_stock=product.min_stock or 0,
            unit=(product.unit or "UN").strip(),
        )
        db.add(db_product)
        db.flush()  # 🔥 get product ID without committing yet

        # 3️⃣ Opening stock through the ledger
        if product.stock_quantity:
            _opening_stock(db, db_product, product.stock_quantity, user_id)

        # 4️⃣ Audit
        log_audit(
            db,
            user_id,
            "CREATE",
            "PRODUCT",
            f"Produto criado: {db_product.name} ({db_product.code})",
        )

        # 5️⃣ Commit once (atomic)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail=DUPLICATE_CODE_DETAIL)
    except Exception:
        db.rollback()
        raise

    db.refresh(db_product)
    logger.info(f"Product created: {db_product.code} - {db_product.name}")
    return db_product


def update_product(
    db: Session,
    product_id: int,
    product: schemas.ProductUpdate,
    user_id: int,
) -> Product:
    db_product = get_product_by_id(db, product_id)
    if not db_product:
        raise HTTPException(status_code=404, detail="Product not found")

    clash = get_product_by_code(db, product.code)
    if clash and clash.id != db_product.id:
        raise HTTPException(status_code=400, detail="Error updating product (duplicate code?)")

    delta = 0
    if product.stock_quantity is not None:
        delta = product.stock_quantity - (db_product.stock_quantity or 0)

    try:
        db_product.code = product.code
        db_product.name = product.name
        db_product.category = product.category.strip() if product.category else None
        db_product.price = product.price
        db_product.cost_price = product.cost_price or 0
        db_product.min_stock = product.min_stock or 0
        db_product.unit = (product.unit or "UN").strip()
        db.flush()

        # 🔹 Stock edits from the form become an ADJ movement
        if delta:
            change_stock(
                db,
                db_product.id,
                delta,
                movement_type=MOVEMENT_ADJ,
                quantity=delta,
                user_id=user_id,
                reason="Ajuste via cadastro",
            )

        log_audit(
            db,
            user_id,
            "UPDATE",
            "PRODUCT",
            f"Produto atualizado: {db_product.name} ({db_product.code})",
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Error updating product (duplicate code?)")
    except Exception:
        db.rollback()
        raise

    db.refresh(db_product)
    return db_product


# -----------------------
# Bulk import (CSV / Excel)
# -----------------------
IMPORT_REQUIRED_COLUMNS = {"code", "name", "price"}


def _read_sheet(file: UploadFile) -> pd.DataFrame:
    filename = (file.filename or "").lower()

    # codes keep leading zeros
    if filename.endswith(".csv"):
        return pd.read_csv(file.file, dtype=str)
    if filename.endswith((".xlsx", ".xls")):
        return pd.read_excel(file.file, dtype=str)

    raise HTTPException(
        status_code=400,
        detail="Invalid file type. Upload .csv, .xlsx or .xls"
    )


def _number(value, default: float = 0) -> float:
    if value is None or pd.isna(value) or not str(value).strip():
        return default
    try:
        return float(str(value).strip().replace(",", "."))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid number: {value}")


def import_products(db: Session, file: UploadFile, user_id: int):
    try:
        df = _read_sheet(file)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=400, detail=f"Could not read file: {exc}")

    # Normalize column names (important!)
    df.columns = [str(c).strip().lower() for c in df.columns]

    if not IMPORT_REQUIRED_COLUMNS.issubset(df.columns):
        raise HTTPException(
            status_code=400,
            detail=f"File must contain columns: {sorted(IMPORT_REQUIRED_COLUMNS)}"
        )

    existing_codes = {code for (code,) in db.query(Product.code).all()}

    created = 0
    skipped = 0

    try:
        for _, row in df.iterrows():

            # Required fields
            if pd.isna(row["code"]) or pd.isna(row["name"]) or pd.isna(row["price"]):
                skipped += 1
                continue

            code = str(row["code"]).strip()
            name = str(row["name"]).strip()
            if not code or not name or code in existing_codes:
                skipped += 1
                continue

            category = row.get("category")
            unit = row.get("unit")

            db_product = models.Product(
                code=code,
                name=name,
                category=None if category is None or pd.isna(category) else str(category).strip(),
                price=_number(row["price"]),
                cost_price=_number(row.get("cost_price")),
                stock_quantity=0,
                min_stock=_number(row.get("min_stock")),
                unit="UN" if unit is None or pd.isna(unit) else str(unit).strip(),
            )
            db.add(db_product)
            db.flush()

            opening = _number(row.get("stock_quantity"))
            if opening:
                _opening_stock(db, db_product, opening, user_id)

            existing_codes.add(code)
            created += 1

        log_audit(
            db,
            user_id,
            "IMPORT",
            "PRODUCT",
            f"Importação de produtos: {created} criados, {skipped} ignorados",
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Product import finished: {created} created, {skipped} skipped")
    return {"created": created, "skipped": skipped}
