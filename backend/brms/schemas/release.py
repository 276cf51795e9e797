"""Release schemas."""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Any, Optional


class ReleaseCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class ReleaseCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    release_id: str = Field(alias="releaseId")
    version: int


class ReleaseResponse(BaseModel):
    id: str
    project_id: str
    version: int
    name: Optional[str] = None
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    file_count: int = 0


class ReleaseFileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    release_id: str
    document_version_id: Optional[str] = None
    name: str
    path: str
    type: str
    content: Any
    created_at: datetime
