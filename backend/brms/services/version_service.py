"""Version store: document content versions and document lifecycle.

Documents come into existence with their first version and are addressed by
(project, key). Versions are immutable; they disappear only when a document
is purged. Soft-deleting a document hides it and its versions from every
lookup without removing rows.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from ..core.auth import ActorContext
from ..exceptions import ValidationError, VersionNotFoundError, DocumentNotFoundError
from ..models import Document, DocumentVersion
from ..repositories import DocumentRepository, VersionRepository
from ..schemas.document import DocumentSummary
from ..schemas.version import VersionSummary, VersionResponse
from . import audit_service
from .content_utils import validate_content
from .transaction import run_in_transaction

logger = logging.getLogger(__name__)

MAX_KEY_LENGTH = 255


def _validate_key(key: str) -> str:
    key = (key or "").strip()
    if not key:
        raise ValidationError("document key is required", field="key")
    if len(key) > MAX_KEY_LENGTH:
        raise ValidationError(f"document key exceeds {MAX_KEY_LENGTH} characters", field="key")
    return key


class VersionService:
    """Create, read, list and delete document versions.

    Every write runs through run_in_transaction, so a document row, its new
    version and the updated_at bump commit together or not at all.
    """

    def __init__(self, db: Session):
        self.db = db
        self.doc_repo = DocumentRepository(db)
        self.version_repo = VersionRepository(db)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_version(
        self,
        key: str,
        content: Any,
        comment: Optional[str],
        actor: ActorContext,
        name: Optional[str] = None,
    ) -> DocumentVersion:
        """Append a version, creating the document on first write.

        The version number is max+1 computed in the inserting transaction.
        A concurrent writer that wins the race makes our insert violate the
        unique constraint; the whole unit is then re-run (bounded), and
        ConflictError is raised if it keeps losing.
        """
        key = _validate_key(key)
        validate_content(content)

        def _work() -> DocumentVersion:
            document = self.doc_repo.get_by_key_optional(actor.project_id, key, for_update=True)
            if document is None:
                document = self.doc_repo.create(actor.project_id, key, actor.id, name=name)
                logger.info("Created document", extra={"key": key, "document_id": document.id})
            elif name and name != document.name:
                document.name = name
            version = self.version_repo.create(document.id, content, comment, actor.id)
            self.doc_repo.touch(document)
            return version

        version = run_in_transaction(self.db, _work, resource=f"document:{key}")
        logger.info(
            "Created version",
            extra={"key": key, "version_id": version.id, "version": version.version},
        )
        audit_service.log(
            self.db, actor, "document", "create_version",
            ref_id=version.document_id,
            data={"key": key, "version_id": version.id, "version": version.version, "comment": comment},
        )
        return version

    def delete_document(self, key: str, actor: ActorContext) -> Document:
        """Soft-delete the active document. Versions stay for history."""
        def _work() -> Document:
            document = self.doc_repo.get_by_key(actor.project_id, key)
            return self.doc_repo.soft_delete(document)

        document = run_in_transaction(self.db, _work, resource=f"document:{key}")
        logger.info("Soft-deleted document", extra={"key": key, "document_id": document.id})
        audit_service.log(self.db, actor, "document", "delete", ref_id=document.id, data={"key": key})
        return document

    def purge_document(self, key: str, actor: ActorContext) -> List[str]:
        """Physically remove every row stored under the key, versions included.

        Release files are frozen copies and are unaffected.
        """
        def _work() -> List[str]:
            documents = self.doc_repo.get_all_by_key_including_deleted(actor.project_id, key)
            if not documents:
                raise DocumentNotFoundError(key, self.doc_repo.list_keys(actor.project_id))
            purged = [document.id for document in documents]
            for document in documents:
                self.doc_repo.permanent_delete(document)
            return purged

        purged = run_in_transaction(self.db, _work, resource=f"document:{key}")
        logger.info("Purged document", extra={"key": key, "document_ids": purged})
        audit_service.log(self.db, actor, "document", "purge", ref_id=purged[0], data={"key": key, "document_ids": purged})
        return purged

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_document(self, key: str, project_id: str) -> Document:
        """Active document or DocumentNotFoundError (listing available keys)."""
        return self.doc_repo.get_by_key(project_id, key)

    def get_latest(self, key: str, project_id: str) -> Optional[DocumentVersion]:
        """Most recently created version, or None when the document has none."""
        document = self.doc_repo.get_by_key_optional(project_id, key)
        if document is None:
            return None
        return self.version_repo.get_latest(document.id)

    def get_by_ordinal(self, key: str, project_id: str, ordinal: int) -> Optional[DocumentVersion]:
        """n-th version from the earliest (1 = first ever created), or None."""
        document = self.doc_repo.get_by_key_optional(project_id, key)
        if document is None:
            return None
        return self.version_repo.get_by_ordinal(document.id, ordinal)

    def get_by_id(self, version_id: str, project_id: str) -> Optional[Any]:
        """Content of a version of any active document in the project, or None."""
        row = (
            self.db.query(DocumentVersion)
            .join(Document, Document.id == DocumentVersion.document_id)
            .filter(
                DocumentVersion.id == version_id,
                Document.project_id == project_id,
                Document.deleted_at.is_(None),
            )
            .first()
        )
        return row.content if row else None

    def get_version(self, key: str, project_id: str, version_id: str) -> VersionResponse:
        """One version of the document, with content. 404 if it belongs elsewhere."""
        document = self.doc_repo.get_by_key(project_id, key)
        version = self.version_repo.get_for_document(document.id, version_id)
        if version is None:
            raise VersionNotFoundError(version_id, key)
        summary = self._summary(version, None, None)
        return VersionResponse(**summary.model_dump(), content=version.content)

    def ordinal_of(self, version: DocumentVersion) -> int:
        return self.version_repo.ordinal_of(version)

    def ordinal_for_id(self, key: str, project_id: str, version_id: str) -> Optional[int]:
        """Ordinal of a version of the active document, or None if it is not one."""
        document = self.doc_repo.get_by_key_optional(project_id, key)
        if document is None:
            return None
        version = self.version_repo.get_for_document(document.id, version_id)
        return self.version_repo.ordinal_of(version) if version else None

    def list_versions(self, key: str, project_id: str) -> List[VersionSummary]:
        """Versions most recent first, annotated with author names."""
        document = self.doc_repo.get_by_key(project_id, key)
        return [
            self._summary(version, first_name, last_name)
            for version, first_name, last_name in self.version_repo.list_with_authors(document.id)
        ]

    def list_documents(self, project_id: str) -> List[DocumentSummary]:
        """Active documents with version counts and publication state."""
        return [
            DocumentSummary(
                id=document.id,
                key=document.key,
                name=document.name,
                type=document.type,
                version_count=count,
                published=document.published_id is not None,
                published_id=document.published_id,
                published_at=document.published_at,
                created_at=document.created_at,
                updated_at=document.updated_at,
            )
            for document, count in self.doc_repo.list_with_version_counts(project_id)
        ]

    @staticmethod
    def _summary(version: DocumentVersion, first_name: Optional[str], last_name: Optional[str]) -> VersionSummary:
        return VersionSummary(
            id=version.id,
            document_id=version.document_id,
            version=version.version,
            comment=version.comment,
            created_by=version.created_by,
            first_name=first_name,
            last_name=last_name,
            created_at=version.created_at,
        )

