"""Verification code repository — durable backend for the code store."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from phone_verification.exceptions import StorageUnavailable
from phone_verification.models.verification_code import VerificationCode

logger = logging.getLogger(__name__)


class VerificationCodeRepository:
    """Encapsulates all database queries on the ``verification_codes`` table.

    Every method opens its own short-lived session and commits before
    returning.  Driver and SQLAlchemy failures surface as
    :class:`StorageUnavailable`.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as exc:
            raise StorageUnavailable(str(exc)) from exc

    async def upsert(
        self, phone_key: str, code: str, expires_at: int, created_at: int
    ) -> None:
        """Insert or replace the pending code for *phone_key*."""
        async with self._session() as session:
            await session.merge(
                VerificationCode(
                    phone_key=phone_key,
                    code=code,
                    expires_at=expires_at,
                    created_at=created_at,
                )
            )
            await session.commit()

    async def get(self, phone_key: str) -> VerificationCode | None:
        """Return the pending code for *phone_key*, or ``None``."""
        async with self._session() as session:
            result = await session.execute(
                select(VerificationCode).where(VerificationCode.phone_key == phone_key)
            )
            return result.scalar_one_or_none()

    async def delete(self, phone_key: str) -> bool:
        """Remove any record for *phone_key*. Returns ``True`` if one existed."""
        async with self._session() as session:
            result = await session.execute(
                delete(VerificationCode).where(VerificationCode.phone_key == phone_key)
            )
            await session.commit()
            return result.rowcount > 0

    async def consume(self, phone_key: str, code: str, now: int) -> bool:
        """Atomically delete the record if *code* matches and it is still live.

        Only one of several concurrent callers can see ``True``: the
        conditional delete removes the row at most once.
        """
        async with self._session() as session:
            result = await session.execute(
                delete(VerificationCode).where(
                    VerificationCode.phone_key == phone_key,
                    VerificationCode.code == code,
                    VerificationCode.expires_at > now,
                )
            )
            await session.commit()
            return result.rowcount == 1

    async def delete_expired(self, now: int) -> int:
        """Remove every record whose expiry is at or before *now*."""
        async with self._session() as session:
            result = await session.execute(
                delete(VerificationCode).where(VerificationCode.expires_at <= now)
            )
            await session.commit()
            if result.rowcount:
                logger.debug("Purged %d expired codes from the database", result.rowcount)
            return result.rowcount
