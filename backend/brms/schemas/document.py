"""Document schemas."""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class DocumentSummary(BaseModel):
    """Row of the document list."""
    id: str
    key: str
    name: str
    type: str
    version_count: int = 0
    published: bool = False
    published_id: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DocumentRef(BaseModel):
    """Identifiers returned by mutating document endpoints."""
    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(alias="documentId")
    version_id: Optional[str] = Field(default=None, alias="versionId")


class PublishRequest(BaseModel):
    """Publish a specific version, or the latest one when omitted."""
    model_config = ConfigDict(populate_by_name=True)

    version_id: Optional[str] = Field(default=None, alias="versionId")


class PublishedForEnvironment(BaseModel):
    """Which version answers for a document in a given environment."""
    model_config = ConfigDict(populate_by_name=True)

    key: str
    env: str
    version_id: Optional[str] = Field(default=None, alias="versionId")
    source: Optional[str] = None
