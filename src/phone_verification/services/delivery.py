"""Delivery channels — send verification codes to the user's phone."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from phone_verification.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    """Value object returned by a channel after a send attempt."""

    success: bool
    detail: str = ""


class DeliveryChannel(ABC):
    """Abstract base class for anything that can deliver a code."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable channel name (used in logs)."""

    @abstractmethod
    async def send(self, phone: str, code: str) -> DeliveryResult:
        """Deliver *code* to *phone* (already normalized)."""


class LoggingDeliveryChannel(DeliveryChannel):
    """Development channel: logs the code instead of sending it."""

    @property
    def name(self) -> str:
        return "logging"

    async def send(self, phone: str, code: str) -> DeliveryResult:
        logger.info("📱 Verification code for %s: %s  (not actually sent)", phone, code)
        return DeliveryResult(success=True)


class WhatsAppDeliveryChannel(DeliveryChannel):
    """Sends the code as a text message via the WhatsApp Cloud API."""

    def __init__(
        self,
        api_token: str,
        phone_number_id: str,
        api_version: str = "v21.0",
        ttl_minutes: float = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_token = api_token
        self._url = (
            f"https://graph.facebook.com/{api_version}/{phone_number_id}/messages"
        )
        self._ttl_minutes = ttl_minutes
        self._transport = transport

    @property
    def name(self) -> str:
        return "whatsapp"

    async def send(self, phone: str, code: str) -> DeliveryResult:
        headers = {
            "Authorization": f"Bearer {self._api_token}",
            "Content-Type": "application/json",
        }
        payload = {
            "messaging_product": "whatsapp",
            "to": phone,
            "type": "text",
            "text": {
                "body": (
                    f"Your verification code is {code}. "
                    f"It expires in {self._ttl_minutes:g} minutes."
                )
            },
        }

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.exception("WhatsApp send request error for %s: %s", phone, exc)
            return DeliveryResult(success=False, detail=str(exc))

        if resp.status_code == 200:
            logger.info("Verification code sent to %s via WhatsApp", phone)
            return DeliveryResult(success=True)

        logger.error(
            "Failed to send verification code to %s: %s %s",
            phone,
            resp.status_code,
            resp.text,
        )
        return DeliveryResult(success=False, detail=f"HTTP {resp.status_code}")


class UnconfiguredDeliveryChannel(DeliveryChannel):
    """Used when no provider is configured: every send fails."""

    @property
    def name(self) -> str:
        return "unconfigured"

    async def send(self, phone: str, code: str) -> DeliveryResult:
        logger.error("No delivery provider configured, cannot send code to %s", phone)
        return DeliveryResult(success=False, detail="no delivery provider configured")


def build_delivery_channel(settings: Settings) -> DeliveryChannel:
    """Pick the channel for the current configuration.

    The logging channel is only ever returned when ``DELIVERY_MOCK`` is
    set; without a WhatsApp token every send fails otherwise.
    """
    if settings.whatsapp_api_token:
        return WhatsAppDeliveryChannel(
            api_token=settings.whatsapp_api_token,
            phone_number_id=settings.whatsapp_phone_number_id,
            api_version=settings.whatsapp_api_version,
            ttl_minutes=settings.code_ttl_minutes,
        )
    if settings.delivery_mock:
        logger.warning("DELIVERY_MOCK is on — verification codes are logged only")
        return LoggingDeliveryChannel()
    logger.error("WHATSAPP_API_TOKEN not set — verification codes cannot be sent")
    return UnconfiguredDeliveryChannel()
