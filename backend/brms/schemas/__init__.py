"""Pydantic schemas for API validation."""

from .document import (
    DocumentSummary,
    DocumentRef,
    PublishRequest,
    PublishedForEnvironment,
)
from .version import (
    VersionCreate,
    VersionCreated,
    VersionSummary,
    VersionResponse,
)
from .release import ReleaseCreate, ReleaseCreated, ReleaseResponse, ReleaseFileResponse
from .environment import EnvironmentResponse, DeployRequest, DeployResult
from .workflow import WorkflowRunResponse, WorkflowJobResponse
from .audit import AuditLogResponse
from .simulation import SimulateRequest, SimulationResponse

__all__ = [
    "DocumentSummary",
    "DocumentRef",
    "PublishRequest",
    "PublishedForEnvironment",
    "VersionCreate",
    "VersionCreated",
    "VersionSummary",
    "VersionResponse",
    "ReleaseCreate",
    "ReleaseCreated",
    "ReleaseResponse",
    "ReleaseFileResponse",
    "EnvironmentResponse",
    "DeployRequest",
    "DeployResult",
    "WorkflowRunResponse",
    "WorkflowJobResponse",
    "AuditLogResponse",
    "SimulateRequest",
    "SimulationResponse",
]
