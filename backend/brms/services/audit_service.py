"""Audit logging service: records all state-changing operations.

Entries are immutable. Writes are best-effort and happen after the business
transaction has committed: an audit failure is logged and rolled back on its
own, never undoing the operation it describes.

Usage in service layer:
    audit_service.log(db, actor, type_="document", action="publish",
                      ref_id=document.id, data={"version_id": version.id})
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Tuple

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.auth import ActorContext
from ..models import AuditLog, User

logger = logging.getLogger(__name__)

MAX_QUERY_LIMIT = 500


def log(
    db: Session,
    actor: Optional[ActorContext],
    type_: str,
    action: str,
    ref_id: Optional[str] = None,
    data: Optional[Any] = None,
) -> None:
    """Write an audit log entry. Never raises: audit failures are logged but don't break operations."""
    try:
        entry = AuditLog(
            type=type_,
            action=action,
            ref_id=ref_id,
            data=data,
            user_id=actor.id if actor else None,
            project_id=actor.project_id if actor else None,
            organisation_id=actor.organisation_id if actor else None,
            ip_address=actor.ip_address if actor else None,
        )
        db.add(entry)
        db.commit()
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.warning(
            "Failed to write audit log: %s", e.__class__.__name__,
            extra={"audit_type": type_, "audit_action": action, "ref_id": ref_id},
        )
        db.rollback()


def query(
    db: Session,
    project_id: str,
    type_: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[Tuple[AuditLog, Optional[str], Optional[str]]]:
    """Audit entries for a project, newest first, with the actor's display names.

    Every filter is a bound parameter; nothing from the request is spliced
    into SQL text.
    """
    limit = max(1, min(limit, MAX_QUERY_LIMIT))
    offset = max(0, offset)
    q = (
        db.query(AuditLog, User.first_name, User.last_name)
        .outerjoin(User, User.id == AuditLog.user_id)
        .filter(AuditLog.project_id == project_id)
    )
    if type_:
        q = q.filter(AuditLog.type == type_)
    if action:
        q = q.filter(AuditLog.action == action)
    return (
        q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def purge_old_entries(db: Session, days: int = 365) -> int:
    """Delete audit log entries older than `days`. Returns count of deleted rows.

    Only called from startup housekeeping. Skipped when days <= 0.
    """
    if days <= 0:
        return 0

    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    try:
        count = db.query(AuditLog).filter(AuditLog.created_at < cutoff).delete()
        db.commit()
        return count
    except sqlalchemy.exc.SQLAlchemyError as e:
        logger.warning("Failed to purge audit log: %s", e)
        db.rollback()
        return 0
