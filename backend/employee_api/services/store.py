"""
Translation of relational-store failures into application errors.
"""

import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Mapping, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from employee_api.core.exceptions import ConflictError, StoreError

logger = logging.getLogger("employee_api.store")

# Matches the column behind a unique violation in PostgreSQL
# ("uq_employees_email", "Key (email)=") and SQLite ("employees.email") messages
_CONFLICT_COLUMN = re.compile(r"(?:key \(|\.|(?:ix|uq)_[a-z]+_)(nip|username|email)\b")

CONFLICT_MESSAGES: Dict[Tuple[str, str], Tuple[str, str]] = {
    ("employees", "nip"): ("NIP already exists", "Employee with this NIP already exists"),
    ("employees", "email"): ("Email already exists", "Employee with this email already exists"),
    ("users", "username"): ("Username already exists", "Please choose a different username"),
    ("users", "email"): ("Email already exists", "Please use a different email address"),
}

# An update only clashes with a different row
UPDATE_CONFLICT_MESSAGES: Dict[Tuple[str, str], Tuple[str, str]] = {
    **CONFLICT_MESSAGES,
    ("employees", "email"): ("Email already exists", "Another employee with this email already exists"),
}


def conflict_from_integrity_error(
    exc: IntegrityError,
    table: str,
    messages: Mapping[Tuple[str, str], Tuple[str, str]] = CONFLICT_MESSAGES,
) -> ConflictError:
    """Build the conflict reported to the client for a unique-constraint violation."""
    match = _CONFLICT_COLUMN.search(str(exc.orig).lower())
    if match:
        reason = messages.get((table, match.group(1)))
        if reason:
            return ConflictError(*reason)
    return ConflictError(error="A record with the same unique value already exists")


@asynccontextmanager
async def store_errors(
    db: AsyncSession,
    table: str,
    conflicts: Mapping[Tuple[str, str], Tuple[str, str]] = CONFLICT_MESSAGES,
) -> AsyncIterator[None]:
    """
    Roll back and re-raise store failures as ConflictError / StoreError.

    Usage:
        async with store_errors(self.db, "employees"):
            self.db.add(employee)
            await self.db.commit()
    """
    try:
        yield
    except IntegrityError as exc:
        await db.rollback()
        logger.info(f"Unique constraint violated on {table}: {exc.orig}")
        raise conflict_from_integrity_error(exc, table, conflicts) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error(f"Database error on {table}: {exc}", exc_info=True)
        raise StoreError(error=str(exc)) from exc
