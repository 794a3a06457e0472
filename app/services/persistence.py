"""
Translation of storage-level write failures into domain errors.

Uniqueness is checked before every write, but two concurrent requests can
both pass the check. The UNIQUE constraints then reject the loser at flush
time; this module turns that IntegrityError into the same DuplicateError
the pre-check would have raised, so callers see one error either way.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, DuplicateError

logger = logging.getLogger(__name__)


async def flush_or_conflict(db: AsyncSession, unique_values: dict[str, str]) -> None:
    """
    Flush pending writes, mapping a unique-constraint violation to DuplicateError.

    Args:
        db: Database session with pending changes.
        unique_values: Candidate conflicting fields and the values being
            written, in the order they should be reported (e.g.
            {"email": ..., "username": ...}).

    Raises:
        DuplicateError: If the violated constraint names one of the fields.
        DatabaseError: For any other integrity failure.
    """
    try:
        await db.flush()
    except IntegrityError as exc:
        # The flush failure leaves the transaction unusable
        await db.rollback()
        message = str(exc.orig).lower()
        for field, value in unique_values.items():
            if field in message:
                logger.info("Unique constraint rejected %s=%s at write time", field, value)
                raise DuplicateError(field, value) from exc
        logger.error("Integrity error on flush: %s", exc.orig)
        raise DatabaseError() from exc
