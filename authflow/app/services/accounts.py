# authflow/app/services/accounts.py
"""
Persistence for Account rows.

All lookups and writes go through these helpers so that database
failures surface as DependencyError and a unique-email violation as
ConflictError, whichever request loses the race.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from authflow.app.core.exceptions import ConflictError, DependencyError
from authflow.app.models.account import Account

logger = logging.getLogger(__name__)

EMAIL_IN_USE_MESSAGE = "Email is already in use"


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def _first(db: AsyncSession, query) -> Optional[Account]:
    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        logger.exception("Account lookup failed")
        raise DependencyError("Database operation failed") from e
    return result.scalars().first()


async def get_by_id(db: AsyncSession, account_id: int) -> Optional[Account]:
    return await _first(db, select(Account).where(Account.id == account_id))


async def get_by_email(db: AsyncSession, email: str) -> Optional[Account]:
    return await _first(db, select(Account).where(Account.email == normalize_email(email)))


async def get_by_verification_code(
    db: AsyncSession, code: str, now: datetime
) -> Optional[Account]:
    """Account holding ``code`` whose expiry is still ahead of ``now``."""
    return await _first(
        db,
        select(Account).where(
            Account.verification_code == code,
            Account.verification_code_expires_at > now,
        ),
    )


async def save(db: AsyncSession, account: Account) -> Account:
    db.add(account)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        # The only unique column besides the primary key is email
        raise ConflictError(EMAIL_IN_USE_MESSAGE) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Saving account failed")
        raise DependencyError("Database operation failed") from e
    await db.refresh(account)
    return account
