"""Seed the default tenant on startup.

Creates the default organisation, project and user (the identity used when
authentication is disabled) plus the configured environments. Idempotent:
rows that already exist are left untouched, so it runs on every start.
"""

import logging

from sqlalchemy.orm import Session

from .config import settings

logger = logging.getLogger(__name__)

_ENVIRONMENT_TYPES = {
    "dev": "development",
    "development": "development",
    "staging": "staging",
    "stage": "staging",
    "prod": "production",
    "production": "production",
}


def environment_type(key: str) -> str:
    """Map an environment key to its type; unknown keys are their own type."""
    return _ENVIRONMENT_TYPES.get(key.lower(), key.lower())


def seed_defaults(db: Session) -> int:
    """Create any missing default rows.

    Args:
        db: An open SQLAlchemy session.

    Returns:
        Number of environments created (0 if all existed).
    """
    from ..models import Organisation, Project, User
    from ..repositories import EnvironmentRepository

    if db.get(Organisation, settings.default_organisation_id) is None:
        db.add(Organisation(id=settings.default_organisation_id, name="Default organisation"))
        db.flush()
    if db.get(Project, settings.default_project_id) is None:
        db.add(Project(
            id=settings.default_project_id,
            organisation_id=settings.default_organisation_id,
            name="Default project",
        ))
        db.flush()
    if db.get(User, settings.default_actor_id) is None:
        db.add(User(
            id=settings.default_actor_id,
            first_name="Default",
            last_name="User",
            email="admin@localhost",
        ))
        db.flush()

    env_repo = EnvironmentRepository(db)
    created = 0
    for position, key in enumerate(settings.get_seed_environments(), start=1):
        if env_repo.get_by_key_optional(settings.default_project_id, key) is not None:
            continue
        env_repo.create(
            project_id=settings.default_project_id,
            key=key,
            name=key.capitalize(),
            type_=environment_type(key),
            workflow_order=position,
        )
        created += 1

    db.commit()
    if created:
        logger.info("Seeded %d environments", created)
    return created
