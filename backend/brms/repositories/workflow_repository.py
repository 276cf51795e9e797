"""Deployment workflow repository."""

import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func

from ..models import DeploymentWorkflowRun, DeploymentWorkflowJob, Release, WorkflowStatus
from ..exceptions import WorkflowNotFoundError
from .base import BaseRepository


class WorkflowRepository(BaseRepository[DeploymentWorkflowRun]):
    """Runs and their jobs. Status changes go through DeploymentService."""

    model_class = DeploymentWorkflowRun
    not_found_error = WorkflowNotFoundError

    def create_run(self, project_id: str, release_id: str, name: str, created_by: Optional[str]) -> DeploymentWorkflowRun:
        run = DeploymentWorkflowRun(
            id=str(uuid.uuid4()),
            project_id=project_id,
            release_id=release_id,
            name=name,
            status=WorkflowStatus.PENDING.value,
            created_by=created_by,
        )
        self.db.add(run)
        self.db.flush()
        return run

    def create_job(
        self,
        run_id: str,
        environment_id: str,
        position: int,
        reviewer_id: Optional[str] = None,
    ) -> DeploymentWorkflowJob:
        job = DeploymentWorkflowJob(
            id=str(uuid.uuid4()),
            run_id=run_id,
            environment_id=environment_id,
            position=position,
            status=WorkflowStatus.PENDING.value,
            reviewer_id=reviewer_id,
        )
        self.db.add(job)
        self.db.flush()
        return job

    def list_runs(self, project_id: str, limit: int = 50) -> List[Tuple[DeploymentWorkflowRun, Optional[Release], int]]:
        """Runs newest first with release display fields and job count."""
        counts = (
            self.db.query(
                DeploymentWorkflowJob.run_id.label("run_id"),
                func.count(DeploymentWorkflowJob.id).label("job_count"),
            )
            .group_by(DeploymentWorkflowJob.run_id)
            .subquery()
        )
        rows = (
            self.db.query(DeploymentWorkflowRun, Release, func.coalesce(counts.c.job_count, 0))
            .outerjoin(Release, Release.id == DeploymentWorkflowRun.release_id)
            .outerjoin(counts, counts.c.run_id == DeploymentWorkflowRun.id)
            .filter(DeploymentWorkflowRun.project_id == project_id)
            .order_by(DeploymentWorkflowRun.created_at.desc())
            .limit(limit)
            .all()
        )
        return [(run, release, int(count)) for run, release, count in rows]

    def get_jobs(self, run_id: str) -> List[DeploymentWorkflowJob]:
        return (
            self.db.query(DeploymentWorkflowJob)
            .filter(DeploymentWorkflowJob.run_id == run_id)
            .order_by(DeploymentWorkflowJob.position.asc())
            .all()
        )
