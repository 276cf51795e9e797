"""Publication and content resolution.

One precedence decides which content answers for a document, on both the
"load document" path and the evaluation path. The first match wins:

  1. explicit version id        -> source ``version``
  2. explicit ordinal           -> source ``version_number``
  3. environment's deployed release file for the document -> ``deployed``
  4. the document's published pointer                     -> ``published``
  5. the most recent version                              -> ``latest``

Publication itself is environment-agnostic: a single pointer per document.
What an environment sees is derived from the release deployed to it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.auth import ActorContext
from ..exceptions import DocumentNotFoundError, VersionNotFoundError
from ..models import Document, DocumentVersion, ReleaseFile
from ..repositories import DocumentRepository, VersionRepository, ReleaseRepository, EnvironmentRepository
from . import audit_service
from .transaction import run_in_transaction

logger = logging.getLogger(__name__)

SOURCE_VERSION = "version"
SOURCE_VERSION_NUMBER = "version_number"
SOURCE_DEPLOYED = "deployed"
SOURCE_PUBLISHED = "published"
SOURCE_LATEST = "latest"
SOURCE_INLINE = "inline"


@dataclass(frozen=True)
class ResolvedContent:
    """Outcome of resolution: the content and where it came from."""

    content: Any
    source: str
    version_id: Optional[str] = None
    version_number: Optional[int] = None
    document_id: Optional[str] = None
    release_id: Optional[str] = None


@dataclass(frozen=True)
class PublishedRef:
    version_id: Optional[str]
    source: str


def parse_version_ref(value: Optional[str]) -> Tuple[Optional[str], Optional[int]]:
    """Split a ``?version=`` value into (version_id, ordinal).

    ASCII digits are an ordinal; anything else is taken as a version id.
    """
    if value is None:
        return None, None
    value = str(value).strip()
    if not value:
        return None, None
    if value.isascii() and value.isdigit():
        return None, int(value)
    return value, None


class ResolutionService:
    """Publishes versions and resolves what content a request should see."""

    def __init__(self, db: Session):
        self.db = db
        self.doc_repo = DocumentRepository(db)
        self.version_repo = VersionRepository(db)
        self.release_repo = ReleaseRepository(db)
        self.env_repo = EnvironmentRepository(db)

    def resolve_content(
        self,
        key: str,
        project_id: str,
        version_id: Optional[str] = None,
        ordinal: Optional[int] = None,
        environment_key: Optional[str] = None,
    ) -> ResolvedContent:
        """Resolve content for a document by the fixed precedence above.

        Raises:
            DocumentNotFoundError: no active document and nothing deployed under the key.
            VersionNotFoundError: an explicit version/ordinal does not exist for the document.
        """
        document = self.doc_repo.get_by_key_optional(project_id, key)

        if version_id is not None:
            document = self._require(document, project_id, key)
            version = self.version_repo.get_for_document(document.id, version_id)
            if version is None:
                raise VersionNotFoundError(version_id, key)
            return self._from_version(version, SOURCE_VERSION)

        if ordinal is not None:
            document = self._require(document, project_id, key)
            version = self.version_repo.get_by_ordinal(document.id, ordinal)
            if version is None:
                raise VersionNotFoundError(str(ordinal), key)
            return self._from_version(version, SOURCE_VERSION_NUMBER)

        if environment_key:
            release_file = self._deployed_file(project_id, environment_key, key)
            if release_file is not None:
                return ResolvedContent(
                    content=release_file.content,
                    source=SOURCE_DEPLOYED,
                    version_id=release_file.document_version_id,
                    document_id=document.id if document else None,
                    release_id=release_file.release_id,
                )

        document = self._require(document, project_id, key)

        published = self._published_version(document)
        if published is not None:
            return self._from_version(published, SOURCE_PUBLISHED)

        latest = self.version_repo.get_latest(document.id)
        if latest is not None:
            return self._from_version(latest, SOURCE_LATEST)

        raise VersionNotFoundError("latest", key)

    def publish(
        self,
        key: str,
        actor: ActorContext,
        version_id: Optional[str] = None,
        ordinal: Optional[int] = None,
    ) -> DocumentVersion:
        """Set the document's published pointer, publisher and timestamp together.

        Without a version id or ordinal the latest version is published.
        Publishing the version already published leaves the pointer as it is
        (the timestamp is refreshed) and still records one audit entry.
        """
        def _work() -> Tuple[DocumentVersion, Optional[str]]:
            document = self.doc_repo.get_by_key_optional(actor.project_id, key, for_update=True)
            document = self._require(document, actor.project_id, key)
            if version_id is not None:
                target = self.version_repo.get_for_document(document.id, version_id)
                ref = version_id
            elif ordinal is not None:
                target = self.version_repo.get_by_ordinal(document.id, ordinal)
                ref = str(ordinal)
            else:
                target = self.version_repo.get_latest(document.id)
                ref = "latest"
            if target is None:
                raise VersionNotFoundError(ref, key)
            previous = document.published_id
            self.doc_repo.set_published(document, target.id, actor.id)
            return target, previous

        version, previous = run_in_transaction(self.db, _work, resource=f"document:{key}")
        logger.info(
            "Published version",
            extra={"key": key, "version_id": version.id, "previous_version_id": previous},
        )
        audit_service.log(
            self.db, actor, "document", "publish",
            ref_id=version.document_id,
            data={"key": key, "version_id": version.id, "previous_version_id": previous},
        )
        return version

    def get_published_for_environment(self, key: str, project_id: str, environment_key: str) -> Optional[PublishedRef]:
        """Which version an environment sees for the document, without loading content.

        The deployed release wins; otherwise the environment-agnostic published
        pointer applies. None when neither exists.
        """
        release_file = self._deployed_file(project_id, environment_key, key)
        if release_file is not None:
            return PublishedRef(version_id=release_file.document_version_id, source=SOURCE_DEPLOYED)
        document = self.doc_repo.get_by_key(project_id, key)
        published = self._published_version(document)
        if published is not None:
            return PublishedRef(version_id=published.id, source=SOURCE_PUBLISHED)
        return None

    # ------------------------------------------------------------------

    def _require(self, document: Optional[Document], project_id: str, key: str) -> Document:
        if document is None:
            raise DocumentNotFoundError(key, self.doc_repo.list_keys(project_id))
        return document

    def _published_version(self, document: Document) -> Optional[DocumentVersion]:
        if not document.published_id:
            return None
        version = self.version_repo.get_for_document(document.id, document.published_id)
        if version is None:
            logger.warning(
                "Published pointer does not reference a version of the document; ignoring it",
                extra={"key": document.key, "published_id": document.published_id},
            )
        return version

    def _deployed_file(self, project_id: str, environment_key: str, key: str) -> Optional[ReleaseFile]:
        environment = self.env_repo.get_by_key_optional(project_id, environment_key)
        if environment is None or environment.release_id is None:
            return None
        return self.release_repo.find_file(environment.release_id, key)

    @staticmethod
    def _from_version(version: DocumentVersion, source: str) -> ResolvedContent:
        return ResolvedContent(
            content=version.content,
            source=source,
            version_id=version.id,
            version_number=version.version,
            document_id=version.document_id,
        )
