from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from fortmix.database import get_db
from fortmix.time_utils import get_tz, parse_bound
from fortmix.users.auth import get_current_user
from fortmix.users.schemas import UserDisplaySchema
from . import schemas, service

router = APIRouter()


@router.get("/stats", response_model=schemas.DashboardStats)
def get_dashboard_stats(
    request: Request,
    from_: Optional[str] = Query(None, alias="from", description="Start of period (date or datetime)"),
    to: Optional[str] = Query(None, description="End of period, inclusive"),
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(get_current_user),
):
    """
    Sales, net profit, critical stock and the revenue chart.
    Defaults to today / current month / last 7 days when no dates are given.
    """
    tz = get_tz(request.app.state.settings.TIMEZONE)
    return service.get_dashboard_stats(
        db,
        tz,
        start=parse_bound(from_, tz),
        end=parse_bound(to, tz, end=True),
    )
