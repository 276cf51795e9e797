"""Audit trail API endpoint."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import ActorContext, require_actor
from ..database import get_db
from ..schemas.audit import AuditLogResponse
from ..services import audit_service

router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("", response_model=List[AuditLogResponse])
def list_audit_entries(
    type: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=audit_service.MAX_QUERY_LIMIT),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Project audit entries, newest first, filterable by type and action."""
    rows = audit_service.query(db, actor.project_id, type_=type, action=action, limit=limit, offset=offset)
    return [
        AuditLogResponse(
            id=entry.id,
            type=entry.type,
            action=entry.action,
            ref_id=entry.ref_id,
            data=entry.data,
            user_id=entry.user_id,
            first_name=first_name,
            last_name=last_name,
            project_id=entry.project_id,
            organisation_id=entry.organisation_id,
            ip_address=entry.ip_address,
            created_at=entry.created_at,
        )
        for entry, first_name, last_name in rows
    ]
