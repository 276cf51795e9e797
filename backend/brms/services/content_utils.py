"""Content helpers for decision graphs.

Stored content is any JSON object or array. Evaluable content is a graph:
an object with ``nodes`` and ``edges`` collections.
"""

import json
from typing import Any, Optional

from ..exceptions import ValidationError

REQUIRED_GRAPH_FIELDS = ("nodes", "edges")


def validate_content(content: Any) -> Any:
    """Check content is present and a JSON-serialisable object or array."""
    if content is None:
        raise ValidationError("content is required", field="content")
    if not isinstance(content, (dict, list)):
        raise ValidationError("content must be a JSON object or array", field="content")
    try:
        json.dumps(content)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"content is not JSON-serialisable: {e}", field="content") from e
    return content


def normalize_graph(content: Any) -> Any:
    """Undo the two encodings seen in stored content.

    Text holding JSON is parsed (left untouched if it does not parse), and a
    ``{"graph": {...}}`` envelope is unwrapped.
    """
    if isinstance(content, (str, bytes)):
        try:
            content = json.loads(content)
        except ValueError:
            return content
    if isinstance(content, dict) and "graph" in content and isinstance(content["graph"], (dict, str)):
        inner = content["graph"]
        if isinstance(inner, str):
            return normalize_graph(inner)
        return inner
    return content


def validate_graph(graph: Any) -> dict:
    """Ensure the graph has node and edge collections. Names the first missing field."""
    if not isinstance(graph, dict):
        raise ValidationError("graph must be a JSON object with nodes and edges", field="graph")
    for field in REQUIRED_GRAPH_FIELDS:
        if not isinstance(graph.get(field), list):
            raise ValidationError(f"graph is missing the '{field}' collection", field=field)
    return graph


def extract_graph_for_save(body: Any) -> Optional[Any]:
    """Accept ``{"graph": {...}}`` or a raw ``{nodes, edges}`` body; None otherwise."""
    if not isinstance(body, dict):
        return None
    if body.get("graph"):
        return body["graph"]
    if "nodes" in body and "edges" in body:
        return body
    return None
