"""Release and release file models."""

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text, DateTime, JSON, text
from sqlalchemy.orm import relationship
from ..database import Base, utcnow

_ACTIVE = text("deleted_at IS NULL")


class Release(Base):
    """Immutable, sequentially numbered bundle of a project's published documents."""

    __tablename__ = "releases"
    __table_args__ = (
        Index(
            "uq_releases_project_version_active",
            "project_id", "version",
            unique=True,
            sqlite_where=_ACTIVE,
            postgresql_where=_ACTIVE,
        ),
    )

    id = Column(String(36), primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False)
    version = Column(Integer, nullable=False)
    name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)

    files = relationship(
        "ReleaseFile",
        back_populates="release",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ReleaseFile(Base):
    """Frozen copy of one published document version.

    ``document_version_id`` records provenance only; the content here must
    outlive later edits to, or purges of, the source document.
    """

    __tablename__ = "release_files"
    __table_args__ = (
        Index("ix_release_files_release_path", "release_id", "path"),
    )

    id = Column(String(36), primary_key=True)
    release_id = Column(String(36), ForeignKey("releases.id", ondelete="CASCADE"), nullable=False)
    document_version_id = Column(String(36), nullable=True)
    name = Column(String(255), nullable=False)
    path = Column(String(500), nullable=False)
    type = Column(String(100), nullable=False)
    content = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    release = relationship("Release", back_populates="files")
