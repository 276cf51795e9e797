"""Database models."""

from .user import Organisation, Project, User, AuditLog
from .document import Document
from .version import DocumentVersion
from .release import Release, ReleaseFile
from .environment import Environment
from .deployment import DeploymentWorkflowRun, DeploymentWorkflowJob, WorkflowStatus

__all__ = [
    "Organisation", "Project", "User", "AuditLog",
    "Document", "DocumentVersion",
    "Release", "ReleaseFile",
    "Environment",
    "DeploymentWorkflowRun", "DeploymentWorkflowJob", "WorkflowStatus",
]
