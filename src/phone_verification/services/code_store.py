"""Dual-backend code store — database first, in-memory fallback.

Codes are written to the database when it is reachable and to the
in-process :class:`InMemoryCodeStore` when it is not.  The two backends
are alternatives rather than replicas: every ``store`` clears the key
from the backend it did not write to, so at most one of them holds a
live code for a given phone.

Nothing in this module raises to its caller.  A failing database is
treated as "no usable record there" and the next fallback is used.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from phone_verification.database.repository import VerificationCodeRepository
from phone_verification.services.memory_store import InMemoryCodeStore

logger = logging.getLogger(__name__)


class DualBackendCodeStore:
    """Persists ``phone_key → code`` with expiry across two backends."""

    def __init__(
        self,
        durable: VerificationCodeRepository,
        memory: InMemoryCodeStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._durable = durable
        self._memory = memory if memory is not None else InMemoryCodeStore()
        self._clock = clock

    @property
    def memory(self) -> InMemoryCodeStore:
        return self._memory

    def _now(self) -> int:
        return int(self._clock() * 1000)

    # ── Store ────────────────────────────────────────────

    async def store(self, phone_key: str, code: str, ttl_minutes: float) -> str:
        """Persist *code* for *phone_key*, valid for *ttl_minutes*.

        Returns *code* unchanged.
        """
        now = self._now()
        expires_at = now + int(ttl_minutes * 60_000)

        try:
            await self._durable.upsert(phone_key, code, expires_at, now)
        except Exception as exc:
            logger.warning(
                "Couldn't store code for %s in the database, using memory: %s",
                phone_key,
                exc,
            )
            self._memory.put(phone_key, code, expires_at, now)
            await self._discard_durable(phone_key)
            return code

        if self._memory.discard(phone_key):
            logger.info("Discarded stale in-memory code for %s", phone_key)
        logger.info("Verification code stored in the database for %s", phone_key)
        return code

    async def _discard_durable(self, phone_key: str) -> None:
        try:
            await self._durable.delete(phone_key)
        except Exception as exc:
            logger.debug("Couldn't clear database code for %s: %s", phone_key, exc)

    # ── Verify ───────────────────────────────────────────

    async def verify(self, phone_key: str, code: str) -> bool:
        """Check *code* against the pending record for *phone_key*.

        The database is consulted first; the memory map only when the
        database has no record or is unreachable.  A correct code is
        consumed, an expired record is purged, a wrong code changes
        nothing.
        """
        now = self._now()

        try:
            record = await self._durable.get(phone_key)
        except Exception as exc:
            logger.warning(
                "Couldn't verify code for %s in the database, trying memory: %s",
                phone_key,
                exc,
            )
            record = None

        if record is not None:
            return await self._verify_durable(phone_key, record.code, record.expires_at, code, now)

        return self._memory.verify(phone_key, code, now)

    async def _verify_durable(
        self, phone_key: str, stored_code: str, expires_at: int, code: str, now: int
    ) -> bool:
        if expires_at <= now:
            logger.info("Code expired for %s", phone_key)
            await self._discard_durable(phone_key)
            return False

        if code != stored_code:
            return False

        try:
            return await self._durable.consume(phone_key, code, now)
        except Exception as exc:
            logger.warning("Couldn't consume code for %s: %s", phone_key, exc)
            return False

    # ── Maintenance ──────────────────────────────────────

    async def purge_expired(self) -> int:
        """Remove expired records from both backends.

        Returns the number of records removed.
        """
        now = self._now()
        removed = self._memory.purge_expired(now)
        try:
            removed += await self._durable.delete_expired(now)
        except Exception as exc:
            logger.warning("Couldn't purge expired codes from the database: %s", exc)
        return removed
