"""Verification service — issues codes, delivers them, checks them."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from phone_verification.config import Settings, settings
from phone_verification.database.engine import async_session_factory
from phone_verification.database.repository import VerificationCodeRepository
from phone_verification.exceptions import DeliveryFailed
from phone_verification.services.code_generator import DEFAULT_CODE_LENGTH, generate_code
from phone_verification.services.code_store import DualBackendCodeStore
from phone_verification.services.delivery import DeliveryChannel, build_delivery_channel

logger = logging.getLogger(__name__)

_PHONE_SEPARATORS = re.compile(r"[\s\-()]")


def normalize_phone(raw_phone: str) -> str:
    """Strip whitespace, hyphens and parentheses: ``(123) 456-7890`` → ``1234567890``."""
    return _PHONE_SEPARATORS.sub("", raw_phone)


@dataclass
class VerificationStart:
    """Returned by :meth:`PhoneVerificationService.initiate`.

    ``code`` is only populated when the debug echo is enabled.
    """

    formatted_phone: str
    code: str | None = None


class PhoneVerificationService:
    """Ties together code generation, storage and delivery.

    Flow
    ----
    1. ``initiate`` normalizes the phone, generates a code, stores it
       with the configured TTL and hands it to the delivery channel.
    2. ``verify`` normalizes the phone the same way and checks the code
       against the store.  Any failure reads as "not verified".
    """

    def __init__(
        self,
        code_store: DualBackendCodeStore,
        channel: DeliveryChannel,
        ttl_minutes: float = 10,
        code_length: int = DEFAULT_CODE_LENGTH,
        expose_code: bool = False,
    ) -> None:
        self._store = code_store
        self._channel = channel
        self._ttl_minutes = ttl_minutes
        self._code_length = code_length
        self._expose_code = expose_code

    @classmethod
    def from_settings(cls, config: Settings) -> PhoneVerificationService:
        """Build a service backed by the application database."""
        code_store = DualBackendCodeStore(VerificationCodeRepository(async_session_factory))
        return cls(
            code_store=code_store,
            channel=build_delivery_channel(config),
            ttl_minutes=config.code_ttl_minutes,
            code_length=config.code_length,
            expose_code=config.expose_debug_code,
        )

    @property
    def code_store(self) -> DualBackendCodeStore:
        return self._store

    async def initiate(self, raw_phone: str) -> VerificationStart:
        """Issue a new code for *raw_phone* and deliver it.

        Raises :class:`DeliveryFailed` if the channel could not send it.
        """
        phone = normalize_phone(raw_phone)
        code = generate_code(self._code_length)

        try:
            await self._store.store(phone, code, self._ttl_minutes)
        except Exception:
            logger.exception("Error storing code for %s, continuing with delivery", phone)

        result = await self._channel.send(phone, code)
        if not result.success:
            logger.error("Delivery via %s failed for %s", self._channel.name, phone)
            raise DeliveryFailed(phone, result.detail)

        logger.info("Verification initiated for %s via %s", phone, self._channel.name)
        if self._expose_code:
            return VerificationStart(formatted_phone=phone, code=code)
        return VerificationStart(formatted_phone=phone)

    async def verify(self, raw_phone: str, code: str) -> bool:
        """Return ``True`` if *code* is the pending, unexpired code for *raw_phone*."""
        phone = normalize_phone(raw_phone)
        try:
            is_valid = await self._store.verify(phone, code)
        except Exception:
            logger.exception("Error verifying code for %s", phone)
            return False

        if is_valid:
            logger.info("Phone %s verified", phone)
        else:
            logger.info("Verification failed for %s", phone)
        return is_valid


# ── Process-wide default service ─────────────────────────
_default_service: PhoneVerificationService | None = None


def get_verification_service() -> PhoneVerificationService:
    """Return the shared service, creating it on first use."""
    global _default_service
    if _default_service is None:
        _default_service = PhoneVerificationService.from_settings(settings)
    return _default_service


async def initiate_phone_verification(phone_number: str) -> VerificationStart:
    """Issue and deliver a code for *phone_number* using the shared service."""
    return await get_verification_service().initiate(phone_number)


async def verify_code(phone_number: str, code: str) -> bool:
    """Check *code* for *phone_number* using the shared service."""
    return await get_verification_service().verify(phone_number, code)
