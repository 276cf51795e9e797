"""Business logic services."""

from .version_service import VersionService
from .resolution_service import ResolutionService, ResolvedContent, parse_version_ref
from .release_service import ReleaseService
from .deployment_service import DeploymentService
from .simulation_service import SimulationService
from .evaluation_engine import DecisionEngine, get_decision_engine

__all__ = [
    "VersionService",
    "ResolutionService",
    "ResolvedContent",
    "parse_version_ref",
    "ReleaseService",
    "DeploymentService",
    "SimulationService",
    "DecisionEngine",
    "get_decision_engine",
]
