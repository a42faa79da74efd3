from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from fortmix.database import get_db
from fortmix.users.auth import get_current_user
from fortmix.users.schemas import UserDisplaySchema
from . import schemas, service

router = APIRouter()


@router.post("", response_model=schemas.SaleCreatedOut)
def create_sale(
    sale_data: schemas.SaleCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(get_current_user),
):
    """
    Finalize a PDV sale: header, items, stock and audit in a single transaction.
    """
    settings = request.app.state.settings
    sale = service.record_sale(
        db,
        sale_data,
        current_user.id,
        allow_negative_stock=settings.ALLOW_NEGATIVE_STOCK,
        total_tolerance=settings.SALE_TOTAL_TOLERANCE,
    )
    return {"id": sale.id}


@router.get("/{sale_id}", response_model=schemas.SaleOut)
def get_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(get_current_user),
):
    sale = service.get_sale(db, sale_id)
    if not sale:
        raise HTTPException(status_code=404, detail="Sale not found")
    return sale
