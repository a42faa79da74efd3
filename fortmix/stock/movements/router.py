from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from fortmix.database import get_db
from fortmix.time_utils import get_tz, parse_bound
from fortmix.users.auth import get_current_user
from fortmix.users.permissions import Role, role_forbidden
from fortmix.users.schemas import UserDisplaySchema
from . import schemas, service

router = APIRouter()


@router.get("/movements", response_model=List[schemas.StockMovementOut])
def list_movements(
    request: Request,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(get_current_user),
):
    """
    Latest stock movements (max 100), optionally within a date range.
    """
    tz = get_tz(request.app.state.settings.TIMEZONE)
    return service.list_movements(
        db,
        start=parse_bound(from_, tz),
        end=parse_bound(to, tz, end=True),
    )


@router.post("/movements", response_model=schemas.StockMovementResult, status_code=201)
def create_movement(
    movement: schemas.StockMovementCreate,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(role_forbidden([Role.SALESPERSON])),
):
    """
    Manual stock entry or correction.
    IN  = goods received (positive quantity)
    ADJ = signed correction after a count
    """
    return service.create_movement(db, movement, current_user.id)
