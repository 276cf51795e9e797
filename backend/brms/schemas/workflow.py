"""Deployment workflow schemas."""

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional


class WorkflowRunResponse(BaseModel):
    id: str
    name: str
    status: str
    release_id: Optional[str] = None
    release_name: Optional[str] = None
    release_version: Optional[int] = None
    job_count: int = 0
    error_message: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class WorkflowJobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    run_id: str
    environment_id: str
    position: int
    status: str
    reviewer_id: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
