"""In-memory code store with expiry — fallback when the database is down."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodeRecord:
    """A pending code held in memory. Timestamps are epoch milliseconds."""

    code: str
    expires_at: int
    created_at: int

    def is_expired(self, now: int) -> bool:
        return self.expires_at <= now


class InMemoryCodeStore:
    """Process-local map of ``phone_key → CodeRecord``.

    Expired entries are purged lazily on verify, or in bulk through
    :meth:`purge_expired`.  Check-and-delete runs under a lock so a code
    can only be consumed once.
    """

    def __init__(self) -> None:
        self._records: dict[str, CodeRecord] = {}
        self._lock = threading.Lock()

    def put(self, phone_key: str, code: str, expires_at: int, created_at: int) -> None:
        """Store *code* for *phone_key*, replacing any pending one."""
        with self._lock:
            self._records[phone_key] = CodeRecord(code, expires_at, created_at)

    def get(self, phone_key: str) -> CodeRecord | None:
        with self._lock:
            return self._records.get(phone_key)

    def discard(self, phone_key: str) -> bool:
        """Drop the record for *phone_key*. Returns ``True`` if one existed."""
        with self._lock:
            return self._records.pop(phone_key, None) is not None

    def verify(self, phone_key: str, code: str, now: int) -> bool:
        """Return ``True`` if *code* matches the stored code and is not expired.

        A match consumes the record.  An expired record is removed
        whatever code was supplied; a wrong code leaves it in place.
        """
        with self._lock:
            record = self._records.get(phone_key)
            if record is None:
                return False
            if record.is_expired(now):
                del self._records[phone_key]
                logger.info("Code expired for %s (in-memory)", phone_key)
                return False
            if code == record.code:
                del self._records[phone_key]
                return True
            return False

    def purge_expired(self, now: int) -> int:
        """Remove all expired records and return how many were dropped."""
        with self._lock:
            expired = [key for key, rec in self._records.items() if rec.is_expired(now)]
            for key in expired:
                del self._records[key]
        if expired:
            logger.debug("Purged %d expired codes from memory", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, phone_key: object) -> bool:
        with self._lock:
            return phone_key in self._records
