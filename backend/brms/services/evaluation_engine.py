"""Decision engine adapter.

Wraps the GoRules Zen engine (``zen-engine`` on PyPI). A fresh engine and
decision are built for every evaluation, so no state is shared between
requests. The binding is imported on first use; the rest of the service
runs without it installed.
"""

import json
import logging
from typing import Any

from ..exceptions import EvaluationError

logger = logging.getLogger(__name__)

_BACKTRACE_MARKER = "\n\nStack backtrace"


def engine_message(error: Exception) -> str:
    """Client-facing text for an engine failure.

    The binding appends a native stack backtrace to its messages; only the
    part before it is kept. When that part is the engine's JSON error
    object, it is reduced to its ``type`` and ``source``.
    """
    text = str(error).split(_BACKTRACE_MARKER, 1)[0].strip()
    try:
        parsed = json.loads(text)
    except ValueError:
        return text
    if not isinstance(parsed, dict) or "type" not in parsed:
        return text
    source = parsed.get("source")
    if source is None:
        return str(parsed["type"])
    if not isinstance(source, str):
        source = json.dumps(source)
    return f"{parsed['type']}: {source}"


class DecisionEngine:
    """Evaluates a decision graph against an input payload."""

    def evaluate(self, graph: dict, payload: Any) -> Any:
        """Return the engine response (result plus engine-reported timing) for ``payload``.

        Raises:
            EvaluationError: binding missing, graph rejected, or evaluation failed.
        """
        try:
            import zen
        except ImportError as e:
            raise EvaluationError("Decision engine is not installed (zen-engine)") from e

        try:
            engine = zen.ZenEngine()
            decision = engine.create_decision(json.dumps(graph))
            response = decision.evaluate(payload if payload is not None else {})
        except Exception as e:
            logger.warning("Decision evaluation failed: %s", e)
            raise EvaluationError(f"Evaluation failed: {engine_message(e)}") from e

        return response


def get_decision_engine() -> DecisionEngine:
    """FastAPI dependency; tests override it with a fake engine."""
    return DecisionEngine()
