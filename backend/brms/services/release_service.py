"""Release builder: immutable snapshots of a project's published documents."""

import copy
import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.auth import ActorContext
from ..models import Release
from ..repositories import DocumentRepository, VersionRepository, ReleaseRepository
from ..schemas.release import ReleaseResponse, ReleaseFileResponse
from . import audit_service
from .transaction import run_in_transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuiltRelease:
    release_id: str
    version: int
    file_count: int


class ReleaseService:
    """Builds and reads releases.

    Building copies content, it does not reference it: later versions,
    re-publication or purges of a document never alter an existing release.
    Documents are not locked while building, so a concurrent publish may or
    may not be captured depending on commit order.
    """

    def __init__(self, db: Session):
        self.db = db
        self.doc_repo = DocumentRepository(db)
        self.version_repo = VersionRepository(db)
        self.release_repo = ReleaseRepository(db)

    def create_release(
        self,
        actor: ActorContext,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> BuiltRelease:
        """Number, insert and fill a release in one transaction.

        An empty bundle (nothing published) is a valid release.
        """
        def _work() -> BuiltRelease:
            version = self.release_repo.next_version(actor.project_id)
            release = self.release_repo.create(actor.project_id, version, name, description, actor.id)
            file_count = 0
            for document in self.doc_repo.list_published(actor.project_id):
                source = self.version_repo.get_for_document(document.id, document.published_id)
                if source is None:
                    logger.warning(
                        "Skipping document with dangling published pointer",
                        extra={"key": document.key, "published_id": document.published_id},
                    )
                    continue
                self.release_repo.add_file(
                    release_id=release.id,
                    document_version_id=source.id,
                    name=document.name,
                    path=document.path,
                    type_=document.type,
                    content=copy.deepcopy(source.content),
                )
                file_count += 1
            self.db.flush()
            return BuiltRelease(release_id=release.id, version=version, file_count=file_count)

        built = run_in_transaction(self.db, _work, resource=f"release:{actor.project_id}")
        logger.info(
            "Created release",
            extra={"release_id": built.release_id, "version": built.version, "file_count": built.file_count},
        )
        audit_service.log(
            self.db, actor, "release", "create",
            ref_id=built.release_id,
            data={"version": built.version, "name": name, "file_count": built.file_count},
        )
        return built

    def list_releases(self, project_id: str) -> List[ReleaseResponse]:
        return [
            self._response(release, count)
            for release, count in self.release_repo.list_with_file_counts(project_id)
        ]

    def get_release(self, project_id: str, release_id: str) -> ReleaseResponse:
        release = self.release_repo.get_in_project(project_id, release_id)
        return self._response(release, self.release_repo.count_files(release.id))

    def list_files(self, project_id: str, release_id: str) -> List[ReleaseFileResponse]:
        """Files of a release; an empty list for an empty bundle."""
        release = self.release_repo.get_in_project(project_id, release_id)
        return [ReleaseFileResponse.model_validate(f) for f in self.release_repo.get_files(release.id)]

    @staticmethod
    def _response(release: Release, file_count: int) -> ReleaseResponse:
        return ReleaseResponse(
            id=release.id,
            project_id=release.project_id,
            version=release.version,
            name=release.name,
            description=release.description,
            created_by=release.created_by,
            created_at=release.created_at,
            file_count=file_count,
        )
