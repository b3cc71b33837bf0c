"""Background task that purges expired codes from both backends."""

from __future__ import annotations

import asyncio
import logging

from phone_verification.services.code_store import DualBackendCodeStore

logger = logging.getLogger(__name__)


async def run_expiry_sweeper(code_store: DualBackendCodeStore, interval_seconds: float) -> None:
    """Call :meth:`DualBackendCodeStore.purge_expired` every *interval_seconds*.

    Runs until cancelled.
    """
    logger.info("Expiry sweeper started (every %ss)", interval_seconds)
    try:
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                removed = await code_store.purge_expired()
            except Exception:
                logger.exception("Expiry sweep failed, retrying next interval")
                continue
            if removed:
                logger.info("Expiry sweeper removed %d codes", removed)
    finally:
        logger.info("Expiry sweeper stopped")
