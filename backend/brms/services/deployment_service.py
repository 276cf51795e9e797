"""Deployment coordinator: assign releases to environments as workflow runs."""

import logging
from typing import Dict, FrozenSet, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.auth import ActorContext
from ..database import utcnow
from ..exceptions import InvalidTransitionError, ValidationError
from ..models import DeploymentWorkflowJob, DeploymentWorkflowRun, WorkflowStatus
from ..repositories import EnvironmentRepository, ReleaseRepository, WorkflowRepository
from ..schemas.environment import EnvironmentResponse
from ..schemas.workflow import WorkflowRunResponse, WorkflowJobResponse
from . import audit_service
from .transaction import run_in_transaction

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[str, FrozenSet[str]] = {
    WorkflowStatus.PENDING.value: frozenset({WorkflowStatus.IN_PROGRESS.value, WorkflowStatus.FAILED.value}),
    WorkflowStatus.IN_PROGRESS.value: frozenset({WorkflowStatus.COMPLETED.value, WorkflowStatus.FAILED.value}),
    WorkflowStatus.COMPLETED.value: frozenset(),
    WorkflowStatus.FAILED.value: frozenset(),
}

WorkflowEntity = Union[DeploymentWorkflowRun, DeploymentWorkflowJob]


def transition(entity: WorkflowEntity, target: WorkflowStatus) -> WorkflowEntity:
    """Move a run or job to ``target``, stamping started/completed times.

    Raises InvalidTransitionError for moves outside
    pending -> in_progress -> completed | failed (pending -> failed allowed).
    """
    target_value = WorkflowStatus(target).value
    if target_value not in TRANSITIONS.get(entity.status, frozenset()):
        raise InvalidTransitionError(entity.status, target_value)
    entity.status = target_value
    now = utcnow()
    if target_value == WorkflowStatus.IN_PROGRESS.value and hasattr(entity, "started_at"):
        entity.started_at = now
    if target_value in (WorkflowStatus.COMPLETED.value, WorkflowStatus.FAILED.value):
        entity.completed_at = now
    return entity


class DeploymentService:
    """Deploys releases and reads environments and workflow history.

    Deployment is synchronous today: the job and run walk the full state
    machine inside one transaction. An asynchronous executor would call
    transition(), complete_run() and fail_run() itself.
    """

    def __init__(self, db: Session):
        self.db = db
        self.env_repo = EnvironmentRepository(db)
        self.release_repo = ReleaseRepository(db)
        self.workflow_repo = WorkflowRepository(db)

    def deploy(self, environment_id: str, release_id: Optional[str], actor: ActorContext) -> DeploymentWorkflowRun:
        """Create a run with one job, point the environment at the release, complete both."""
        if not release_id:
            raise ValidationError("releaseId is required", field="releaseId")

        def _work() -> DeploymentWorkflowRun:
            environment = self.env_repo.get_in_project(actor.project_id, environment_id)
            release = self.release_repo.get_in_project(actor.project_id, release_id)
            run = self.workflow_repo.create_run(
                project_id=environment.project_id,
                release_id=release.id,
                name=f"Deploy to {environment.name}",
                created_by=actor.id,
            )
            job = self.workflow_repo.create_job(run.id, environment.id, position=1, reviewer_id=actor.id)
            transition(run, WorkflowStatus.IN_PROGRESS)
            transition(job, WorkflowStatus.IN_PROGRESS)
            self.env_repo.set_release(environment, release.id)
            transition(job, WorkflowStatus.COMPLETED)
            transition(run, WorkflowStatus.COMPLETED)
            self.db.flush()
            return run

        run = run_in_transaction(self.db, _work, resource=f"environment:{environment_id}")
        logger.info(
            "Deployed release",
            extra={"environment_id": environment_id, "release_id": release_id, "workflow_run_id": run.id},
        )
        audit_service.log(
            self.db, actor, "environment", "deploy",
            ref_id=environment_id,
            data={"release_id": release_id, "workflow_run_id": run.id},
        )
        return run

    def complete_run(self, project_id: str, run_id: str) -> DeploymentWorkflowRun:
        """Complete an in-progress run and its unfinished jobs."""
        def _work() -> DeploymentWorkflowRun:
            run = self.workflow_repo.get_in_project(project_id, run_id)
            for job in self.workflow_repo.get_jobs(run.id):
                if job.status == WorkflowStatus.PENDING.value:
                    transition(job, WorkflowStatus.IN_PROGRESS)
                if job.status == WorkflowStatus.IN_PROGRESS.value:
                    transition(job, WorkflowStatus.COMPLETED)
            return transition(run, WorkflowStatus.COMPLETED)

        return run_in_transaction(self.db, _work, resource=f"workflow:{run_id}")

    def fail_run(self, project_id: str, run_id: str, error_message: str) -> DeploymentWorkflowRun:
        """Fail a pending or in-progress run along with its unfinished jobs."""
        def _work() -> DeploymentWorkflowRun:
            run = self.workflow_repo.get_in_project(project_id, run_id)
            for job in self.workflow_repo.get_jobs(run.id):
                if job.status in (WorkflowStatus.PENDING.value, WorkflowStatus.IN_PROGRESS.value):
                    transition(job, WorkflowStatus.FAILED)
            transition(run, WorkflowStatus.FAILED)
            run.error_message = error_message
            return run

        run = run_in_transaction(self.db, _work, resource=f"workflow:{run_id}")
        logger.warning("Workflow run failed", extra={"workflow_run_id": run_id, "error": error_message})
        return run

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_environments(self, project_id: str) -> List[EnvironmentResponse]:
        return [
            EnvironmentResponse(
                id=environment.id,
                key=environment.key,
                name=environment.name,
                type=environment.type,
                workflow_order=environment.workflow_order,
                release_id=environment.release_id,
                release_name=release.name if release else None,
                release_version=release.version if release else None,
                updated_at=environment.updated_at,
            )
            for environment, release in self.env_repo.list_with_releases(project_id)
        ]

    def list_runs(self, project_id: str, limit: int = 50) -> List[WorkflowRunResponse]:
        """Newest first."""
        return [
            self._run_response(run, release, job_count)
            for run, release, job_count in self.workflow_repo.list_runs(project_id, limit)
        ]

    def get_run(self, project_id: str, run_id: str) -> WorkflowRunResponse:
        run = self.workflow_repo.get_in_project(project_id, run_id)
        release = self.release_repo.get_by_id_optional(run.release_id) if run.release_id else None
        return self._run_response(run, release, len(self.workflow_repo.get_jobs(run.id)))

    def list_jobs(self, project_id: str, run_id: str) -> List[WorkflowJobResponse]:
        run = self.workflow_repo.get_in_project(project_id, run_id)
        return [WorkflowJobResponse.model_validate(job) for job in self.workflow_repo.get_jobs(run.id)]

    @staticmethod
    def _run_response(run: DeploymentWorkflowRun, release, job_count: int) -> WorkflowRunResponse:
        return WorkflowRunResponse(
            id=run.id,
            name=run.name,
            status=run.status,
            release_id=run.release_id,
            release_name=release.name if release else None,
            release_version=release.version if release else None,
            job_count=job_count,
            error_message=run.error_message,
            created_by=run.created_by,
            created_at=run.created_at,
            started_at=run.started_at,
            completed_at=run.completed_at,
        )
