"""Document model."""

from sqlalchemy import Column, ForeignKey, Index, String, DateTime, text
from sqlalchemy.orm import relationship
from ..database import Base, utcnow

_ACTIVE = text("deleted_at IS NULL")


class Document(Base):
    """A named, versioned JSON decision graph within a project."""

    __tablename__ = "documents"
    __table_args__ = (
        # At most one active document per (project, key); soft-deleted rows
        # keep their key so history stays attributable.
        Index(
            "uq_documents_project_key_active",
            "project_id", "key",
            unique=True,
            sqlite_where=_ACTIVE,
            postgresql_where=_ACTIVE,
        ),
        Index("ix_documents_updated_at", "updated_at"),
    )

    id = Column(String(36), primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False)
    key = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    type = Column(String(100), nullable=False, default="decision")

    # Weak reference to one of this document's own versions. Deliberately
    # not a foreign key: versions are only ever removed together with the
    # document, and resolution re-checks ownership before using it.
    published_id = Column(String(36), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    published_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Soft delete (NULL = active, timestamp = deleted)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)

    versions = relationship(
        "DocumentVersion",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def path(self) -> str:
        """Location of this document inside a release bundle."""
        return self.key
