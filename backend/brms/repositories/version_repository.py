"""Version repository for database operations."""

import uuid
from typing import Any, List, Optional, Tuple

from sqlalchemy import and_, func, or_

from ..models import DocumentVersion, User
from ..exceptions import VersionNotFoundError
from .base import BaseRepository


class VersionRepository(BaseRepository[DocumentVersion]):
    """Repository for immutable document versions.

    Two numbering notions coexist:
      * ``version``: stored integer, assigned max+1 at insert time;
      * ordinal: position by creation time (1 = oldest surviving version),
        computed by ordering and offset, never read from the column.
    """

    model_class = DocumentVersion
    not_found_error = VersionNotFoundError

    def _chronological(self, document_id: str):
        return (
            self.db.query(DocumentVersion)
            .filter(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.created_at.asc(), DocumentVersion.version.asc())
        )

    def next_version_number(self, document_id: str) -> int:
        """max(version)+1 for the document; must run in the inserting transaction."""
        current = (
            self.db.query(func.max(DocumentVersion.version))
            .filter(DocumentVersion.document_id == document_id)
            .scalar()
        )
        return (current or 0) + 1

    def create(self, document_id: str, content: Any, comment: Optional[str], created_by: Optional[str]) -> DocumentVersion:
        """Insert a new version numbered max+1.

        Flushes immediately so a unique-constraint race surfaces here as an
        IntegrityError rather than at commit.
        """
        db_version = DocumentVersion(
            id=str(uuid.uuid4()),
            document_id=document_id,
            version=self.next_version_number(document_id),
            content=content,
            comment=comment,
            created_by=created_by,
        )
        self.db.add(db_version)
        self.db.flush()
        return db_version

    def get_for_document(self, document_id: str, version_id: str) -> Optional[DocumentVersion]:
        """Version by id, only if it belongs to the given document."""
        return (
            self.db.query(DocumentVersion)
            .filter(DocumentVersion.id == version_id, DocumentVersion.document_id == document_id)
            .first()
        )

    def get_latest(self, document_id: str) -> Optional[DocumentVersion]:
        """Most recently created version."""
        return (
            self.db.query(DocumentVersion)
            .filter(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.created_at.desc(), DocumentVersion.version.desc())
            .first()
        )

    def get_by_ordinal(self, document_id: str, ordinal: int) -> Optional[DocumentVersion]:
        """The n-th version counting from the earliest (1-based). None when out of range."""
        if ordinal < 1:
            return None
        return self._chronological(document_id).offset(ordinal - 1).first()

    def ordinal_of(self, version: DocumentVersion) -> int:
        """Position of a version in creation order (inverse of get_by_ordinal)."""
        return (
            self.db.query(func.count(DocumentVersion.id))
            .filter(
                DocumentVersion.document_id == version.document_id,
                or_(
                    DocumentVersion.created_at < version.created_at,
                    and_(
                        DocumentVersion.created_at == version.created_at,
                        DocumentVersion.version <= version.version,
                    ),
                ),
            )
            .scalar()
        )

    def count(self, document_id: str) -> int:
        return (
            self.db.query(func.count(DocumentVersion.id))
            .filter(DocumentVersion.document_id == document_id)
            .scalar()
        )

    def list_with_authors(self, document_id: str) -> List[Tuple[DocumentVersion, Optional[str], Optional[str]]]:
        """All versions, most recent first, with the creator's first and last name."""
        return (
            self.db.query(DocumentVersion, User.first_name, User.last_name)
            .outerjoin(User, User.id == DocumentVersion.created_by)
            .filter(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.created_at.desc(), DocumentVersion.version.desc())
            .all()
        )
