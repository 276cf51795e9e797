"""Organisation, Project, User, and AuditLog models.

Projects scope every document, release and environment. Users are referenced
for attribution only (authoring, publishing, deploying).
AuditLog records every state-changing operation for accountability.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Text, ForeignKey, Index, JSON
from ..database import Base, utcnow


class Organisation(Base):
    """Top-level tenant."""

    __tablename__ = "organisations"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Project(Base):
    """A set of documents, releases and environments managed together."""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True)
    organisation_id = Column(String(36), ForeignKey("organisations.id"), nullable=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class User(Base):
    """Operator account. Display fields appear next to versions and audit entries."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), unique=True, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class AuditLog(Base):
    """Append-only record of state-changing operations.

    Written by the service layer after the business transaction commits,
    never modified. Fields:
        type   : document, release, environment, simulation
        action : create_version, publish, delete, purge, create, deploy, evaluate
        ref_id : ID of the affected resource
        data   : JSON with additional context
    """

    __tablename__ = "audit_log"
    __table_args__ = (
        Index("ix_audit_log_project_created", "project_id", "created_at"),
        Index("ix_audit_log_type_action", "type", "action"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(50), nullable=False)
    action = Column(String(50), nullable=False)
    ref_id = Column(String(255), nullable=True)
    data = Column(JSON, nullable=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True)
    organisation_id = Column(String(36), ForeignKey("organisations.id", ondelete="SET NULL"), nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
