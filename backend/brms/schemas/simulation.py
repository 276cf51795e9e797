"""Simulation schemas."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


class SimulateRequest(BaseModel):
    """``graph``, when present, is evaluated as-is and never stored."""
    payload: Any = Field(default_factory=dict)
    graph: Any = None


class SimulationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    id: str
    env: str
    used_version: Optional[str] = Field(default=None, alias="usedVersion")
    version_number: Optional[int] = Field(default=None, alias="versionNumber")
    source: str
    performance: str
    elapsed_micros: float = Field(alias="elapsedMicros")
    result: Any = None
