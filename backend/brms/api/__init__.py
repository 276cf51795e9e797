"""API routes."""

from .documents import router as documents_router
from .releases import router as releases_router
from .environments import router as environments_router
from .workflows import router as workflows_router
from .audit import router as audit_router
from .simulate import router as simulate_router
from .graphs import router as graphs_router

__all__ = [
    "documents_router",
    "releases_router",
    "environments_router",
    "workflows_router",
    "audit_router",
    "simulate_router",
    "graphs_router",
]
