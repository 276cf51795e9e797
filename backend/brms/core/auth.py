"""Actor resolution: FastAPI dependency producing an explicit ActorContext.

Public interface:
    ``require_actor``: returns the ActorContext for the request or raises 401.

Every service call receives the context as an argument; nothing reads a
process-wide identity. When ``settings.auth_enabled`` is False the context is
the configured default identity so the development workflow is unbroken.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .logging_config import actor_id_var
from .token_factory import decode_token
from ..database import get_db
from ..exceptions import AuthenticationError

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class ActorContext:
    """Who is acting, in which project, and from where."""

    id: str
    project_id: str
    organisation_id: Optional[str] = None
    ip_address: Optional[str] = None


def client_ip(request: Request) -> Optional[str]:
    """Originating address, honouring ``X-Forwarded-For`` behind a proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def default_actor(ip_address: Optional[str] = None) -> ActorContext:
    """The fixed identity used when authentication is disabled."""
    return ActorContext(
        id=settings.default_actor_id,
        project_id=settings.default_project_id,
        organisation_id=settings.default_organisation_id,
        ip_address=ip_address,
    )


def require_actor(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> ActorContext:
    """Resolve the acting identity for this request."""
    ip_address = client_ip(request)

    if not settings.auth_enabled:
        actor = default_actor(ip_address)
    else:
        if credentials is None:
            raise AuthenticationError("Missing authentication token")
        payload = decode_token(
            credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
        )
        if payload is None:
            raise AuthenticationError("Invalid or expired token")
        _ensure_active_user(db, payload.sub)
        _ensure_project(db, payload.project_id)
        actor = ActorContext(
            id=payload.sub,
            project_id=payload.project_id,
            organisation_id=payload.organisation_id or None,
            ip_address=ip_address,
        )

    actor_id_var.set(actor.id)
    return actor


def _ensure_active_user(db: Session, user_id: str) -> None:
    """Token subjects must name an existing, active user (versions and audit rows reference it)."""
    from ..models.user import User

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")


def _ensure_project(db: Session, project_id: str) -> None:
    """Token projects must exist; documents and releases are written under them."""
    from ..models.user import Project

    if not project_id or db.get(Project, project_id) is None:
        raise AuthenticationError("Project not found")
