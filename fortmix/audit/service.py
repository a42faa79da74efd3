from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from fortmix.audit.models import AuditLog
from fortmix.users.models import User


AUDIT_LIST_LIMIT = 200


def log_audit(db: Session, user_id: Optional[int], action: str, entity: str, details: str):
    """
    Stage an audit entry on the caller's session.
    Nothing is committed here: the entry lands (or not) with the caller's transaction.
    """
    entry = AuditLog(
        user_id=user_id,
        action=action,
        entity=entity,
        details=details,
    )
    db.add(entry)
    return entry


def list_audit_logs(
    db: Session,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: int = AUDIT_LIST_LIMIT,
):
    query = (
        db.query(AuditLog, User.name.label("user_name"))
        .outerjoin(User, User.id == AuditLog.user_id)
    )

    if start:
        query = query.filter(AuditLog.created_at >= start)
    if end:
        query = query.filter(AuditLog.created_at <= end)

    rows = (
        query
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )

    return [
        {
            "id": log.id,
            "user_id": log.user_id,
            "user_name": user_name,
            "action": log.action,
            "entity": log.entity,
            "details": log.details,
            "created_at": log.created_at,
        }
        for log, user_name in rows
    ]
