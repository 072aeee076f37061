"""Razorpay webhook handler"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import get_db
from app.schemas.payment import WebhookOutcome
from app.services.gateway import BasePaymentGateway, get_payment_gateway
from app.services.payments import PaymentService

router = APIRouter()
logger = structlog.get_logger()


@router.post("", response_model=WebhookOutcome)
async def handle_razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
    gateway: BasePaymentGateway = Depends(get_payment_gateway),
):
    """
    Handle payment events from Razorpay.

    The signature covers the exact request bytes, so the body is read raw and
    only parsed after it has been verified.
    """
    raw_body = await request.body()
    logger.debug("Razorpay webhook received", size=len(raw_body))

    service = PaymentService(db, gateway)
    return await service.handle_webhook(raw_body, x_razorpay_signature)
