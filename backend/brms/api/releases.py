"""Release API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import ActorContext, require_actor
from ..database import get_db
from ..schemas.release import ReleaseCreate, ReleaseCreated, ReleaseResponse, ReleaseFileResponse
from ..services import ReleaseService

router = APIRouter(prefix="/api/releases", tags=["releases"])


@router.get("", response_model=List[ReleaseResponse])
def list_releases(
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Releases, newest version first, with file counts."""
    return ReleaseService(db).list_releases(actor.project_id)


@router.post("", response_model=ReleaseCreated, status_code=201)
def create_release(
    body: Optional[ReleaseCreate] = None,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Snapshot every published document into a new numbered release."""
    body = body or ReleaseCreate()
    built = ReleaseService(db).create_release(actor, name=body.name, description=body.description)
    return ReleaseCreated(release_id=built.release_id, version=built.version)


@router.get("/{release_id}", response_model=ReleaseResponse)
def get_release(
    release_id: str,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    return ReleaseService(db).get_release(actor.project_id, release_id)


@router.get("/{release_id}/files", response_model=List[ReleaseFileResponse])
def list_release_files(
    release_id: str,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    return ReleaseService(db).list_files(actor.project_id, release_id)
