"""Deployment workflow run and job models.

Status transitions: pending -> in_progress -> completed | failed
(pending may also fail directly). Deployments currently complete
synchronously, but the columns support an executor finishing them later.
"""

from enum import Enum

from sqlalchemy import Column, ForeignKey, Integer, String, Text, DateTime
from sqlalchemy.orm import relationship
from ..database import Base, utcnow


class WorkflowStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class DeploymentWorkflowRun(Base):
    """One deploy action: a release assigned to an environment."""

    __tablename__ = "deployment_workflow_runs"

    id = Column(String(36), primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False)
    release_id = Column(String(36), ForeignKey("releases.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=WorkflowStatus.PENDING.value)
    error_message = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    jobs = relationship(
        "DeploymentWorkflowJob",
        back_populates="run",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DeploymentWorkflowJob.position",
    )


class DeploymentWorkflowJob(Base):
    """Per-environment step of a workflow run."""

    __tablename__ = "deployment_workflow_jobs"

    id = Column(String(36), primary_key=True)
    run_id = Column(String(36), ForeignKey("deployment_workflow_runs.id", ondelete="CASCADE"), nullable=False)
    environment_id = Column(String(36), ForeignKey("environments.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default=WorkflowStatus.PENDING.value)
    reviewer_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    run = relationship("DeploymentWorkflowRun", back_populates="jobs")
