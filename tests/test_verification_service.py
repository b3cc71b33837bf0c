"""Tests for the PhoneVerificationService — the full initiate/verify flow."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from phone_verification.database.repository import VerificationCodeRepository
from phone_verification.exceptions import DeliveryFailed
from phone_verification.models.verification_code import Base
from phone_verification.services.code_store import DualBackendCodeStore
from phone_verification.services.delivery import DeliveryResult, LoggingDeliveryChannel
from phone_verification.services.verification_service import (
    PhoneVerificationService,
    normalize_phone,
)

# ── In-memory test database ─────────────────────────────
_test_engine = create_async_engine(
    "sqlite+aiosqlite://", echo=False, poolclass=StaticPool
)
_test_session_factory = async_sessionmaker(_test_engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def code_store():
    async with _test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield DualBackendCodeStore(VerificationCodeRepository(_test_session_factory))

    async with _test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await _test_engine.dispose()


@pytest.fixture
def channel():
    """Logging channel with ``send`` wrapped so calls can be inspected."""
    ch = LoggingDeliveryChannel()
    ch.send = AsyncMock(wraps=ch.send)
    return ch


@pytest.fixture
def service(code_store, channel):
    return PhoneVerificationService(code_store, channel, expose_code=True)


# ──────────────────────────────────────────────────────────
# Phone normalization
# ──────────────────────────────────────────────────────────
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("+1 555 0100", "+15550100"),
        ("123-456-7890", "1234567890"),
        ("(123) 456 7890", "1234567890"),
        ("  +44 (20) 7123-4567 ", "+442071234567"),
        ("+15550100", "+15550100"),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


# ──────────────────────────────────────────────────────────
# End-to-end flow
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_initiate_then_verify_once(service, channel):
    start = await service.initiate("+1 555 0100")

    assert start.formatted_phone == "+15550100"
    assert len(start.code) == 6 and start.code.isdigit()
    channel.send.assert_awaited_once_with("+15550100", start.code)

    assert await service.verify("+15550100", start.code) is True
    assert await service.verify("+15550100", start.code) is False


@pytest.mark.asyncio
async def test_code_verifies_under_other_phone_format(service):
    start = await service.initiate("123-456-7890")
    assert await service.verify("(123) 456 7890", start.code) is True


@pytest.mark.asyncio
async def test_new_initiate_supersedes_previous_code(service):
    first = await service.initiate("+15550100")
    second = await service.initiate("+15550100")

    if first.code != second.code:
        assert await service.verify("+15550100", first.code) is False
    assert await service.verify("+15550100", second.code) is True


@pytest.mark.asyncio
async def test_code_hidden_unless_debug_echo_enabled(code_store, channel):
    service = PhoneVerificationService(code_store, channel)

    start = await service.initiate("+15550100")

    assert start.formatted_phone == "+15550100"
    assert start.code is None
    sent_code = channel.send.await_args.args[1]
    assert await service.verify("+15550100", sent_code) is True


@pytest.mark.asyncio
async def test_code_length_is_configurable(code_store, channel):
    service = PhoneVerificationService(code_store, channel, code_length=4, expose_code=True)
    start = await service.initiate("+15550100")
    assert len(start.code) == 4


# ──────────────────────────────────────────────────────────
# Failure handling
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_delivery_failure_raises(code_store):
    channel = LoggingDeliveryChannel()
    channel.send = AsyncMock(return_value=DeliveryResult(success=False, detail="HTTP 500"))
    service = PhoneVerificationService(code_store, channel)

    with pytest.raises(DeliveryFailed) as exc_info:
        await service.initiate("+1 555 0100")

    assert exc_info.value.phone == "+15550100"
    assert "HTTP 500" in str(exc_info.value)


@pytest.mark.asyncio
async def test_store_error_does_not_abort_delivery(channel):
    broken_store = AsyncMock(spec=DualBackendCodeStore)
    broken_store.store.side_effect = RuntimeError("unexpected")
    service = PhoneVerificationService(broken_store, channel, expose_code=True)

    start = await service.initiate("+15550100")

    assert start.code is not None
    channel.send.assert_awaited_once()


@pytest.mark.asyncio
async def test_verify_error_is_fail_closed(channel):
    broken_store = AsyncMock(spec=DualBackendCodeStore)
    broken_store.verify.side_effect = RuntimeError("unexpected")
    service = PhoneVerificationService(broken_store, channel)

    assert await service.verify("+15550100", "123456") is False


@pytest.mark.asyncio
async def test_verify_unknown_phone(service):
    assert await service.verify("+19999999999", "123456") is False
