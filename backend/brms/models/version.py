"""Document version model."""

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base, utcnow


class DocumentVersion(Base):
    """Immutable content snapshot of a document.

    ``version`` is assigned as max+1 inside the creating transaction; the
    unique constraint turns a lost race into an IntegrityError the service
    retries. Ordinal lookups never read it: they order by creation time.
    """

    __tablename__ = "document_versions"
    __table_args__ = (
        UniqueConstraint("document_id", "version", name="uq_document_versions_document_version"),
        Index("ix_document_versions_document_created", "document_id", "created_at"),
    )

    id = Column(String(36), primary_key=True)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    version = Column(Integer, nullable=False)
    content = Column(JSON, nullable=False)
    comment = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    document = relationship("Document", back_populates="versions")
