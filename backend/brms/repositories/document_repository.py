"""Document repository for database operations.

Owns all document query logic including soft-delete filtering and project
scoping. Every read goes through _base_query(), so callers never need to
think about the deleted_at column.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Query

from ..models import Document, DocumentVersion
from ..exceptions import DocumentNotFoundError
from .base import BaseRepository


class DocumentRepository(BaseRepository[Document]):
    """Repository for document lifecycle operations.

    Documents are addressed by (project_id, key). Only one active row may
    exist per pair; soft-deleted rows are kept for history and can only be
    reached through get_all_by_key_including_deleted().
    """

    model_class = Document
    not_found_error = DocumentNotFoundError

    def _base_query(self) -> Query:
        """Exclude soft-deleted documents from all default queries."""
        return self.db.query(Document).filter(Document.deleted_at.is_(None))

    def create(self, project_id: str, key: str, created_by: Optional[str], name: Optional[str] = None) -> Document:
        """Insert a new active document. The partial unique index rejects duplicates."""
        db_document = Document(
            id=str(uuid.uuid4()),
            project_id=project_id,
            key=key,
            name=name or key,
            created_by=created_by,
        )
        self.db.add(db_document)
        self.db.flush()
        return db_document

    def get_by_key_optional(self, project_id: str, key: str, for_update: bool = False) -> Optional[Document]:
        """Active document for (project, key), or None.

        With ``for_update`` the row is locked until the transaction ends, so
        concurrent writers to the same document queue up (PostgreSQL; SQLite
        serialises writers anyway).
        """
        query = self._base_query().filter(Document.project_id == project_id, Document.key == key)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def get_by_key(self, project_id: str, key: str) -> Document:
        """Active document for (project, key). Raises DocumentNotFoundError listing known keys."""
        document = self.get_by_key_optional(project_id, key)
        if document is None:
            raise DocumentNotFoundError(key, self.list_keys(project_id))
        return document

    def list_keys(self, project_id: str) -> List[str]:
        """Keys of all active documents in a project, sorted."""
        rows = (
            self._base_query()
            .with_entities(Document.key)
            .filter(Document.project_id == project_id)
            .order_by(Document.key.asc())
            .all()
        )
        return [row.key for row in rows]

    def list_with_version_counts(self, project_id: str) -> List[Tuple[Document, int]]:
        """Active documents with their version count, most recently updated first."""
        counts = (
            self.db.query(
                DocumentVersion.document_id.label("document_id"),
                func.count(DocumentVersion.id).label("version_count"),
            )
            .group_by(DocumentVersion.document_id)
            .subquery()
        )
        rows = (
            self.db.query(Document, func.coalesce(counts.c.version_count, 0))
            .outerjoin(counts, counts.c.document_id == Document.id)
            .filter(Document.project_id == project_id, Document.deleted_at.is_(None))
            .order_by(Document.updated_at.desc(), Document.key.asc())
            .all()
        )
        return [(document, int(count)) for document, count in rows]

    def list_published(self, project_id: str) -> List[Document]:
        """Active documents that have a published pointer."""
        return (
            self._base_query()
            .filter(Document.project_id == project_id, Document.published_id.isnot(None))
            .order_by(Document.key.asc())
            .all()
        )

    def touch(self, document: Document) -> None:
        """Bump updated_at as part of the current transaction."""
        document.updated_at = datetime.now(timezone.utc)

    def set_published(self, document: Document, version_id: str, published_by: Optional[str]) -> Document:
        """Point the document at one of its versions, stamping time and publisher together."""
        document.published_id = version_id
        document.published_at = datetime.now(timezone.utc)
        document.published_by = published_by
        self.db.flush()
        return document

    def soft_delete(self, document: Document) -> Document:
        """Mark document as deleted. Versions stay for history but become unreachable."""
        if document.deleted_at is None:
            document.deleted_at = datetime.now(timezone.utc)
            self.db.flush()
        return document

    def get_all_by_key_including_deleted(self, project_id: str, key: str) -> List[Document]:
        """Every row ever stored under (project, key), active or soft-deleted."""
        return (
            self.db.query(Document)
            .filter(Document.project_id == project_id, Document.key == key)
            .all()
        )

    def permanent_delete(self, document: Document) -> None:
        """Hard delete a document; its versions cascade."""
        self.db.delete(document)
        self.db.flush()
