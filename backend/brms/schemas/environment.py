"""Environment and deployment schemas."""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class EnvironmentResponse(BaseModel):
    id: str
    key: str
    name: str
    type: str
    workflow_order: int
    release_id: Optional[str] = None
    release_name: Optional[str] = None
    release_version: Optional[int] = None
    updated_at: Optional[datetime] = None


class DeployRequest(BaseModel):
    """``releaseId`` is checked by the service so its absence names the field."""
    model_config = ConfigDict(populate_by_name=True)

    release_id: Optional[str] = Field(default=None, alias="releaseId")


class DeployResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    workflow_run_id: str = Field(alias="workflowRunId")
