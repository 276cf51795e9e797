"""Data access repositories."""

from .base import BaseRepository
from .document_repository import DocumentRepository
from .version_repository import VersionRepository
from .release_repository import ReleaseRepository
from .environment_repository import EnvironmentRepository
from .workflow_repository import WorkflowRepository

__all__ = [
    "BaseRepository",
    "DocumentRepository",
    "VersionRepository",
    "ReleaseRepository",
    "EnvironmentRepository",
    "WorkflowRepository",
]
