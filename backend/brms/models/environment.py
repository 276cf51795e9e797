"""Environment model."""

from sqlalchemy import Column, ForeignKey, Integer, String, DateTime, UniqueConstraint
from ..database import Base, utcnow


class Environment(Base):
    """Deployment target (dev, staging, production...) holding one release.

    Created out-of-band (seeded on first start); only the deploy operation
    changes ``release_id``.
    """

    __tablename__ = "environments"
    __table_args__ = (
        UniqueConstraint("project_id", "key", name="uq_environments_project_key"),
    )

    id = Column(String(36), primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False)
    key = Column(String(100), nullable=False)
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False, default="development")
    workflow_order = Column(Integer, nullable=False, default=0)
    release_id = Column(String(36), ForeignKey("releases.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
