"""Version schemas."""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Any, Optional


class VersionCreate(BaseModel):
    """Body of ``POST /documents/{key}/versions``.

    ``content`` is optional here so a missing value surfaces as the service's
    field-naming ValidationError rather than a generic 422.
    """
    content: Any = None
    comment: Optional[str] = None
    name: Optional[str] = None


class VersionCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(alias="documentId")
    version_id: str = Field(alias="versionId")
    version: int


class VersionSummary(BaseModel):
    """Version history row, newest first, with author display fields."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    document_id: str
    version: int
    comment: Optional[str] = None
    created_by: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: datetime


class VersionResponse(VersionSummary):
    """A single version including its content."""
    content: Any
