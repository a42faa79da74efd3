from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from fortmix.database import get_db
from fortmix.time_utils import get_tz, parse_bound
from fortmix.users.permissions import Role, role_required
from fortmix.users.schemas import UserDisplaySchema
from . import schemas, service

router = APIRouter()


@router.get("", response_model=List[schemas.AuditLogOut])
def list_audit_logs(
    request: Request,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(role_required([Role.OWNER])),
):
    """
    Audit trail, newest first (Owner only).
    """
    tz = get_tz(request.app.state.settings.TIMEZONE)
    return service.list_audit_logs(
        db,
        start=parse_bound(from_, tz),
        end=parse_bound(to, tz, end=True),
    )
