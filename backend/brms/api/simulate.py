"""Simulation API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..core.auth import ActorContext, require_actor
from ..database import get_db
from ..schemas.simulation import SimulateRequest, SimulationResponse
from ..services import SimulationService
from ..services.evaluation_engine import DecisionEngine, get_decision_engine
from .deps import environment_key

router = APIRouter(prefix="/api/simulate", tags=["simulation"])


def _simulate(
    key: Optional[str],
    request: Request,
    body: Optional[SimulateRequest],
    env: Optional[str],
    version: Optional[str],
    db: Session,
    engine: DecisionEngine,
    actor: ActorContext,
) -> SimulationResponse:
    body = body or SimulateRequest()
    return SimulationService(db, engine).simulate(
        key,
        actor,
        payload=body.payload,
        environment_key=environment_key(request, env),
        version=version,
        inline_graph=body.graph,
    )


@router.post("", response_model=SimulationResponse)
def simulate_default(
    request: Request,
    body: Optional[SimulateRequest] = None,
    env: Optional[str] = Query(None),
    version: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    engine: DecisionEngine = Depends(get_decision_engine),
    actor: ActorContext = Depends(require_actor),
):
    """Evaluate the ``default`` document."""
    return _simulate(None, request, body, env, version, db, engine, actor)


@router.post("/{key}", response_model=SimulationResponse)
def simulate(
    key: str,
    request: Request,
    body: Optional[SimulateRequest] = None,
    env: Optional[str] = Query(None),
    version: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    engine: DecisionEngine = Depends(get_decision_engine),
    actor: ActorContext = Depends(require_actor),
):
    """Evaluate ``payload`` against an inline graph or the resolved document."""
    return _simulate(key, request, body, env, version, db, engine, actor)
