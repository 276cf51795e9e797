"""Environment and deployment API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import ActorContext, require_actor
from ..database import get_db
from ..schemas.environment import EnvironmentResponse, DeployRequest, DeployResult
from ..services import DeploymentService

router = APIRouter(prefix="/api/environments", tags=["environments"])


@router.get("", response_model=List[EnvironmentResponse])
def list_environments(
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Environments in workflow order, each with its current release."""
    return DeploymentService(db).list_environments(actor.project_id)


@router.post("/{environment_id}/deploy", response_model=DeployResult)
def deploy(
    environment_id: str,
    body: Optional[DeployRequest] = None,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    """Assign a release to the environment, recorded as a workflow run."""
    release_id = body.release_id if body else None
    run = DeploymentService(db).deploy(environment_id, release_id, actor)
    return DeployResult(workflow_run_id=run.id)
