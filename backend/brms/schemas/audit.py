"""Audit log schemas."""

from pydantic import BaseModel
from datetime import datetime
from typing import Any, Optional


class AuditLogResponse(BaseModel):
    id: int
    type: str
    action: str
    ref_id: Optional[str] = None
    data: Any = None
    user_id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    project_id: Optional[str] = None
    organisation_id: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: datetime
