"""Deployment history API endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import ActorContext, require_actor
from ..database import get_db
from ..schemas.workflow import WorkflowRunResponse, WorkflowJobResponse
from ..services import DeploymentService

router = APIRouter(prefix="/api/workflows", tags=["workflows"])


@router.get("", response_model=List[WorkflowRunResponse])
def list_workflow_runs(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    return DeploymentService(db).list_runs(actor.project_id, limit)


@router.get("/{run_id}", response_model=WorkflowRunResponse)
def get_workflow_run(
    run_id: str,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    return DeploymentService(db).get_run(actor.project_id, run_id)


@router.get("/{run_id}/jobs", response_model=List[WorkflowJobResponse])
def list_workflow_jobs(
    run_id: str,
    db: Session = Depends(get_db),
    actor: ActorContext = Depends(require_actor),
):
    return DeploymentService(db).list_jobs(actor.project_id, run_id)
