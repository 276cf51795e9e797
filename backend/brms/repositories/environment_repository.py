"""Environment repository."""

import uuid
from typing import List, Optional, Tuple

from ..models import Environment, Release
from ..exceptions import EnvironmentNotFoundError
from .base import BaseRepository


class EnvironmentRepository(BaseRepository[Environment]):
    """Environments are created out-of-band; the only mutation is set_release()."""

    model_class = Environment
    not_found_error = EnvironmentNotFoundError

    def create(self, project_id: str, key: str, name: str, type_: str, workflow_order: int) -> Environment:
        environment = Environment(
            id=str(uuid.uuid4()),
            project_id=project_id,
            key=key,
            name=name,
            type=type_,
            workflow_order=workflow_order,
        )
        self.db.add(environment)
        self.db.flush()
        return environment

    def get_by_key_optional(self, project_id: str, key: str) -> Optional[Environment]:
        return (
            self.db.query(Environment)
            .filter(Environment.project_id == project_id, Environment.key == key)
            .first()
        )

    def list_with_releases(self, project_id: str) -> List[Tuple[Environment, Optional[Release]]]:
        """Environments in workflow order, each with its current release (if any)."""
        return (
            self.db.query(Environment, Release)
            .outerjoin(Release, Release.id == Environment.release_id)
            .filter(Environment.project_id == project_id)
            .order_by(Environment.workflow_order.asc(), Environment.key.asc())
            .all()
        )

    def set_release(self, environment: Environment, release_id: str) -> Environment:
        """Overwrite the environment's release reference."""
        environment.release_id = release_id
        self.db.flush()
        return environment
