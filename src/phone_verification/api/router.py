"""Verification API router.

Endpoints
---------
POST /verification/send     → issue and deliver a code
POST /verification/verify   → check a code
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from phone_verification.exceptions import DeliveryFailed
from phone_verification.services.verification_service import (
    PhoneVerificationService,
    get_verification_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verification", tags=["verification"])


# ── Response / request models ────────────────────────────

class SendCodeRequest(BaseModel):
    phone: str


class SendCodeResponse(BaseModel):
    formatted_phone: str
    code: str | None = None


class VerifyCodeRequest(BaseModel):
    phone: str
    code: str


class VerifyCodeResponse(BaseModel):
    valid: bool


# ── Endpoints ────────────────────────────────────────────

@router.post("/send", response_model=SendCodeResponse, response_model_exclude_none=True)
async def send_code(
    body: SendCodeRequest,
    service: PhoneVerificationService = Depends(get_verification_service),
):
    """Generate a code for the phone number and deliver it."""
    try:
        start = await service.initiate(body.phone)
    except DeliveryFailed as exc:
        logger.warning("Send failed: %s", exc)
        raise HTTPException(
            status_code=502, detail="Could not send verification code, please try again"
        ) from exc

    return SendCodeResponse(formatted_phone=start.formatted_phone, code=start.code)


@router.post("/verify", response_model=VerifyCodeResponse)
async def check_code(
    body: VerifyCodeRequest,
    service: PhoneVerificationService = Depends(get_verification_service),
):
    """Validate a code for the phone number.

    Wrong, expired and unknown codes all answer ``{"valid": false}``.
    """
    return VerifyCodeResponse(valid=await service.verify(body.phone, body.code))
