from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import Any, Dict
import logging

from serenity.account.entitlements import (
    EntitlementService,
    PaymentVerification,
    get_entitlement_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/entitlements")


class EntitlementResponse(BaseModel):
    user_id: str
    is_premium: bool


class VerifyPaymentRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    success: bool
    confirmation: Dict[str, Any] = Field(default_factory=dict)


class VerifyPaymentResponse(BaseModel):
    success: bool
    message: str


@router.get("/{user_id}", response_model=EntitlementResponse)
async def get_entitlement(
    user_id: str,
    service: EntitlementService = Depends(get_entitlement_service),
):
    """Premium status for a user"""
    return EntitlementResponse(user_id=user_id, is_premium=service.is_premium_user(user_id))


@router.post("/verify", response_model=VerifyPaymentResponse)
async def verify_payment(
    request: VerifyPaymentRequest,
    service: EntitlementService = Depends(get_entitlement_service),
):
    """Record a payment verification result"""
    try:
        granted = service.apply_verification(
            PaymentVerification(
                user_id=request.user_id,
                success=request.success,
                confirmation=request.confirmation,
            )
        )
    except Exception as e:
        logger.error(f"Error verifying payment: {e}")
        raise HTTPException(status_code=500, detail="Failed to update entitlement")

    if not granted:
        raise HTTPException(status_code=402, detail="Payment not completed")

    return VerifyPaymentResponse(success=True, message="Premium access activated successfully!")
