from typing import Optional

from pydantic import BaseModel

from fortmix.time_utils import UtcDateTime


class AuditLogOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    action: str
    entity: str
    details: Optional[str] = None
    created_at: UtcDateTime
