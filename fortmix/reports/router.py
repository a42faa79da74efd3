from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from fortmix.database import get_db
from fortmix.time_utils import get_tz, parse_bound
from fortmix.users.auth import get_current_user
from fortmix.users.schemas import UserDisplaySchema
from . import schemas, service

router = APIRouter()


def _bounds(request: Request, from_: Optional[str], to: Optional[str]):
    tz = get_tz(request.app.state.settings.TIMEZONE)
    return parse_bound(from_, tz), parse_bound(to, tz, end=True)


@router.get("/sales", response_model=schemas.SalesReport)
def sales_report(
    request: Request,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(get_current_user),
):
    """
    Sales with items, top 10 products by revenue and period totals.
    All time when no dates are given.
    """
    start, end = _bounds(request, from_, to)
    return service.sales_report(db, start, end)


@router.get("/sales/export")
def export_sales_report(
    request: Request,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(get_current_user),
):
    start, end = _bounds(request, from_, to)
    content = service.sales_report_csv(db, start, end)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="sales_report.csv"'},
    )
