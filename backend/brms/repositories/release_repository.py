"""Release repository: numbering, snapshots and lookups."""

import uuid
from typing import Any, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Query

from ..models import Release, ReleaseFile
from ..exceptions import ReleaseNotFoundError
from .base import BaseRepository


class ReleaseRepository(BaseRepository[Release]):
    """Repository for releases and their frozen files. Soft-deleted releases are invisible."""

    model_class = Release
    not_found_error = ReleaseNotFoundError

    def _base_query(self) -> Query:
        return self.db.query(Release).filter(Release.deleted_at.is_(None))

    def next_version(self, project_id: str) -> int:
        """max(non-deleted release version)+1 for the project, starting at 1."""
        current = (
            self.db.query(func.max(Release.version))
            .filter(Release.project_id == project_id, Release.deleted_at.is_(None))
            .scalar()
        )
        return (current or 0) + 1

    def create(
        self,
        project_id: str,
        version: int,
        name: Optional[str],
        description: Optional[str],
        created_by: Optional[str],
    ) -> Release:
        release = Release(
            id=str(uuid.uuid4()),
            project_id=project_id,
            version=version,
            name=name,
            description=description,
            created_by=created_by,
        )
        self.db.add(release)
        self.db.flush()
        return release

    def add_file(
        self,
        release_id: str,
        document_version_id: Optional[str],
        name: str,
        path: str,
        type_: str,
        content: Any,
    ) -> ReleaseFile:
        release_file = ReleaseFile(
            id=str(uuid.uuid4()),
            release_id=release_id,
            document_version_id=document_version_id,
            name=name,
            path=path,
            type=type_,
            content=content,
        )
        self.db.add(release_file)
        return release_file

    def list_with_file_counts(self, project_id: str) -> List[Tuple[Release, int]]:
        """Releases of the project, newest version first, with their file count."""
        counts = (
            self.db.query(
                ReleaseFile.release_id.label("release_id"),
                func.count(ReleaseFile.id).label("file_count"),
            )
            .group_by(ReleaseFile.release_id)
            .subquery()
        )
        rows = (
            self.db.query(Release, func.coalesce(counts.c.file_count, 0))
            .outerjoin(counts, counts.c.release_id == Release.id)
            .filter(Release.project_id == project_id, Release.deleted_at.is_(None))
            .order_by(Release.version.desc())
            .all()
        )
        return [(release, int(count)) for release, count in rows]

    def count_files(self, release_id: str) -> int:
        return (
            self.db.query(func.count(ReleaseFile.id))
            .filter(ReleaseFile.release_id == release_id)
            .scalar()
        )

    def get_files(self, release_id: str) -> List[ReleaseFile]:
        return (
            self.db.query(ReleaseFile)
            .filter(ReleaseFile.release_id == release_id)
            .order_by(ReleaseFile.path.asc())
            .all()
        )

    def find_file(self, release_id: str, path: str) -> Optional[ReleaseFile]:
        """File at ``path`` inside a non-deleted release, or None."""
        return (
            self.db.query(ReleaseFile)
            .join(Release, Release.id == ReleaseFile.release_id)
            .filter(
                ReleaseFile.release_id == release_id,
                ReleaseFile.path == path,
                Release.deleted_at.is_(None),
            )
            .first()
        )
