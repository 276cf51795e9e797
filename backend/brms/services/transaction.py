"""Transaction runner for multi-statement mutations.

The unit of work runs, then commits. Any exception rolls the whole unit back
before propagating. Unique-constraint violations (two writers claiming the
same number) are retried from scratch a bounded number of times and then
surfaced as a retryable ConflictError. Other integrity failures, such as a
foreign key naming a missing row, cannot succeed on retry and surface as a
DatabaseError.
"""

import logging
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import ConflictError, DatabaseError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLSTATE for unique_violation (PostgreSQL).
_UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when ``exc`` is a unique/primary-key clash rather than a FK or NOT NULL failure."""
    orig = exc.orig
    if getattr(orig, "pgcode", None) == _UNIQUE_VIOLATION:
        return True
    return "unique constraint" in str(orig).lower()


def run_in_transaction(
    db: Session,
    work: Callable[[], T],
    resource: str,
    attempts: Optional[int] = None,
) -> T:
    """Run ``work`` and commit, retrying on unique-constraint races.

    ``work`` must be safe to re-run: it is called again after a rollback and
    must re-read whatever it needs.
    """
    attempts = attempts or settings.version_retry_attempts
    for attempt in range(1, attempts + 1):
        try:
            result = work()
            db.commit()
            return result
        except IntegrityError as e:
            db.rollback()
            if not is_unique_violation(e):
                logger.error(
                    "Integrity error is not retryable",
                    extra={"resource": resource, "error_type": type(e.orig).__name__},
                )
                raise DatabaseError() from e
            logger.warning(
                "Unique constraint race, retrying",
                extra={"resource": resource, "attempt": attempt, "max_attempts": attempts},
            )
        except Exception:
            db.rollback()
            raise
    raise ConflictError(resource)
