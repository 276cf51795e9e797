"""Legacy ``/api/graphs`` endpoints.

Older clients address documents as graphs and versions by ordinal. These
routes run on the same services as ``/api/documents``; a graph id is a
document key and every ``version`` here is an ordinal.
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session

from ..core.auth import ActorContext, require_actor
from ..database import get_db
from ..exceptions import NotFoundError, ValidationError
from ..services import VersionService, ResolutionService
from ..services.content_utils import extract_graph_for_save
from .deps import environment_key

router = APIRouter(prefix="/api/graphs", tags=["graphs"])


def _ordinal(value: Any, field: str = "version") -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        ordinal = int(str(value))
    except ValueError as e:
        raise ValidationError("version must be a positive integer", field=field) from e
    if ordinal < 1:
        raise ValidationError("version must be a positive integer", field=field)
    return ordinal


@router.get("")
def list_graphs(
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    return [
        {
            "id": doc.key,
            "name": doc.name or doc.key,
            "updated_at": doc.updated_at,
            "latest_version": doc.version_count or None,
        }
        for doc in VersionService(db).list_documents(actor.project_id)
    ]


@router.post("/{graph_id}")
def save_graph(
    graph_id: str,
    body: Any = Body(None),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Store a new version from ``{graph: {...}}`` or a raw ``{nodes, edges}`` body."""
    graph = extract_graph_for_save(body)
    if graph is None:
        raise ValidationError("graph is required", field="graph")
    service = VersionService(db)
    version = service.create_version(graph_id, graph, body.get("comment"), actor)
    return {"ok": True, "id": graph_id, "version": service.ordinal_of(version)}


@router.get("/{graph_id}")
def get_graph(
    graph_id: str,
    request: Request,
    version: Optional[str] = Query(None),
    env: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Content at ordinal ``?version=N``, else as resolved for the environment; ``{}`` when absent."""
    try:
        resolved = ResolutionService(db).resolve_content(
            graph_id,
            actor.project_id,
            ordinal=_ordinal(version),
            environment_key=environment_key(request, env),
        )
    except NotFoundError:
        return {}
    return resolved.content


@router.get("/{graph_id}/versions")
def list_graph_versions(
    graph_id: str,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    versions = VersionService(db).list_versions(graph_id, actor.project_id)
    total = len(versions)
    return [
        {"version": total - index, "comment": v.comment, "created_at": v.created_at}
        for index, v in enumerate(versions)
    ]


@router.post("/{graph_id}/publish")
def publish_graph(
    graph_id: str,
    request: Request,
    body: Any = Body(None),
    env: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Publish ordinal ``version`` from the body, or the latest version."""
    ordinal = _ordinal(body.get("version")) if isinstance(body, dict) else None
    version = ResolutionService(db).publish(graph_id, actor, ordinal=ordinal)
    return {
        "ok": True,
        "id": graph_id,
        "env": environment_key(request, env),
        "version": VersionService(db).ordinal_of(version),
    }


@router.get("/{graph_id}/published")
def get_published_graph(
    graph_id: str,
    request: Request,
    env: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    env_key = environment_key(request, env)
    ordinal = None
    try:
        ref = ResolutionService(db).get_published_for_environment(graph_id, actor.project_id, env_key)
    except NotFoundError:
        ref = None
    if ref is not None and ref.version_id:
        ordinal = VersionService(db).ordinal_for_id(graph_id, actor.project_id, ref.version_id)
    return {"id": graph_id, "env": env_key, "version": ordinal}


@router.delete("/{graph_id}")
def delete_graph(
    graph_id: str,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    VersionService(db).delete_document(graph_id, actor)
    return {"ok": True, "id": graph_id}
