"""Evaluation gateway: resolve a decision graph and run it through the engine."""

import logging
import time
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..core.auth import ActorContext
from ..schemas.simulation import SimulationResponse
from . import audit_service
from .content_utils import normalize_graph, validate_graph
from .evaluation_engine import DecisionEngine
from .resolution_service import ResolutionService, ResolvedContent, SOURCE_INLINE, parse_version_ref

logger = logging.getLogger(__name__)

DEFAULT_SIMULATION_KEY = "default"


def format_micros(micros: float) -> str:
    return f"{micros:.1f}µs"


class SimulationService:
    """Evaluates stored or inline graphs. Never writes decision content."""

    def __init__(self, db: Session, engine: DecisionEngine):
        self.db = db
        self.engine = engine
        self.resolver = ResolutionService(db)

    def simulate(
        self,
        key: Optional[str],
        actor: ActorContext,
        payload: Any = None,
        environment_key: Optional[str] = None,
        version: Optional[str] = None,
        inline_graph: Any = None,
    ) -> SimulationResponse:
        """Evaluate ``payload`` against the graph for ``key``.

        An inline graph wins over everything stored and is not persisted.
        Otherwise content is resolved with the same precedence as a document
        load. Stored or inline, the graph is normalised and must carry node
        and edge collections before the engine sees it.
        """
        key = key or DEFAULT_SIMULATION_KEY
        payload = payload if payload is not None else {}

        if inline_graph is not None:
            resolved = ResolvedContent(content=inline_graph, source=SOURCE_INLINE)
        else:
            version_id, ordinal = parse_version_ref(version)
            resolved = self.resolver.resolve_content(
                key,
                actor.project_id,
                version_id=version_id,
                ordinal=ordinal,
                environment_key=environment_key,
            )

        graph = validate_graph(normalize_graph(resolved.content))

        started = time.perf_counter_ns()
        result = self.engine.evaluate(graph, payload)
        elapsed_micros = (time.perf_counter_ns() - started) / 1000

        logger.info(
            "Evaluated decision",
            extra={
                "key": key,
                "source": resolved.source,
                "version_id": resolved.version_id,
                "env": environment_key,
                "elapsed_micros": elapsed_micros,
            },
        )
        audit_service.log(
            self.db, actor, "simulation", "evaluate",
            ref_id=resolved.document_id,
            data={
                "key": key,
                "source": resolved.source,
                "version_id": resolved.version_id,
                "env": environment_key,
                "elapsed_micros": elapsed_micros,
            },
        )
        return SimulationResponse(
            id=key,
            env=environment_key or "",
            used_version=resolved.version_id,
            version_number=resolved.version_number,
            source=resolved.source,
            performance=format_micros(elapsed_micros),
            elapsed_micros=elapsed_micros,
            result=result,
        )
