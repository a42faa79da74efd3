from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from fortmix.database import get_db
from fortmix.stock.products import schemas, service
from fortmix.users.auth import get_current_user
from fortmix.users.permissions import Role, role_forbidden
from fortmix.users.schemas import UserDisplaySchema

router = APIRouter()

can_edit_products = role_forbidden([Role.SALESPERSON])


@router.get("", response_model=List[schemas.ProductOut])
def list_products(
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(get_current_user),
):
    return service.get_products(db)


@router.post("", response_model=schemas.ProductCreatedOut)
def create_product(
    product: schemas.ProductCreate,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(can_edit_products),
):
    db_product = service.create_product(db, product, current_user.id)
    return {"id": db_product.id}


@router.post("/import", response_model=schemas.ProductImportOut)
def import_products(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(can_edit_products),
):
    """
    Bulk product registration from a spreadsheet.
    Required columns: code, name, price.
    """
    return service.import_products(db, file, current_user.id)


@router.get("/{product_id}", response_model=schemas.ProductOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(get_current_user),
):
    product = service.get_product_by_id(db, product_id)

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    return product


@router.put("/{product_id}")
def update_product(
    product_id: int,
    product: schemas.ProductUpdate,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(can_edit_products),
):
    service.update_product(db, product_id, product, current_user.id)
    return {"success": True}
