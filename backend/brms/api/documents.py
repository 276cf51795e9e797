"""Document API endpoints.

Endpoints are thin: VersionService owns versions and the document lifecycle,
ResolutionService owns publication and deciding which content answers.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..core.auth import ActorContext, require_actor
from ..database import get_db
from ..schemas.document import DocumentSummary, DocumentRef, PublishRequest, PublishedForEnvironment
from ..schemas.version import VersionCreate, VersionCreated, VersionSummary, VersionResponse
from ..services import VersionService, ResolutionService, parse_version_ref
from .deps import environment_key

router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.get("", response_model=List[DocumentSummary])
def list_documents(
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Active documents with version counts and publication state."""
    return VersionService(db).list_documents(actor.project_id)


@router.get("/{key}")
def get_document_content(
    key: str,
    request: Request,
    version: Optional[str] = Query(None, description="Version id, or an ordinal when numeric"),
    version_number: Optional[int] = Query(None, alias="versionNumber", ge=1),
    env: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Resolved content of the document, returned as-is.

    The headers say where it came from: ``X-Document-Source`` and
    ``X-Document-Version``.
    """
    version_id, ordinal = parse_version_ref(version)
    if version_id is None and ordinal is None:
        ordinal = version_number
    resolved = ResolutionService(db).resolve_content(
        key,
        actor.project_id,
        version_id=version_id,
        ordinal=ordinal,
        environment_key=environment_key(request, env),
    )
    headers = {"X-Document-Source": resolved.source}
    if resolved.version_id:
        headers["X-Document-Version"] = resolved.version_id
    return JSONResponse(content=resolved.content, headers=headers)


@router.post("/{key}/versions", response_model=VersionCreated, status_code=201)
def create_version(
    key: str,
    body: VersionCreate,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Append a version; the document is created on its first version."""
    version = VersionService(db).create_version(key, body.content, body.comment, actor, name=body.name)
    return VersionCreated(document_id=version.document_id, version_id=version.id, version=version.version)


@router.post("/{key}/publish", response_model=DocumentRef)
def publish_document(
    key: str,
    body: Optional[PublishRequest] = None,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Publish ``versionId``, or the latest version when omitted."""
    version_id = body.version_id if body else None
    version = ResolutionService(db).publish(key, actor, version_id=version_id)
    return DocumentRef(document_id=version.document_id, version_id=version.id)


@router.get("/{key}/versions", response_model=List[VersionSummary])
def list_versions(
    key: str,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Version history, most recent first."""
    return VersionService(db).list_versions(key, actor.project_id)


@router.get("/{key}/versions/{version_id}", response_model=VersionResponse)
def get_version(
    key: str,
    version_id: str,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    return VersionService(db).get_version(key, actor.project_id, version_id)


@router.get("/{key}/published", response_model=PublishedForEnvironment)
def get_published(
    key: str,
    request: Request,
    env: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Which version answers for the document in an environment."""
    env_key = environment_key(request, env)
    ref = ResolutionService(db).get_published_for_environment(key, actor.project_id, env_key)
    return PublishedForEnvironment(
        key=key,
        env=env_key,
        version_id=ref.version_id if ref else None,
        source=ref.source if ref else None,
    )


@router.delete("/{key}")
def delete_document(
    key: str,
    purge: bool = Query(False, description="Physically remove the document and every version"),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Soft-delete the document, or purge it with ``?purge=true``."""
    service = VersionService(db)
    if purge:
        purged = service.purge_document(key, actor)
        return {"documentId": purged[0], "purged": purged}
    document = service.delete_document(key, actor)
    return {"documentId": document.id}
