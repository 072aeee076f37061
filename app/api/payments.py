"""Payment API endpoints"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from app.database import get_db
from app.errors import NotFoundError, PaymentVerificationError
from app.models.user import User
from app.schemas.payment import PaymentIntentResponse, PaymentResponse, VerifyPaymentRequest
from app.services.gateway import BasePaymentGateway, get_payment_gateway
from app.services.payments import PaymentService
from app.api.auth import get_current_active_user

router = APIRouter()
logger = structlog.get_logger()


def get_payment_service(
    db: AsyncSession = Depends(get_db),
    gateway: BasePaymentGateway = Depends(get_payment_gateway),
) -> PaymentService:
    return PaymentService(db, gateway)


@router.post("/create/{order_id}", response_model=PaymentIntentResponse, status_code=201)
async def create_payment(
    order_id: UUID,
    current_user: User = Depends(get_current_active_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Create a payment intent for a placed order"""
    return await service.create_payment_intent(current_user, order_id)


@router.post("/verify", response_model=PaymentResponse)
async def verify_payment(
    request: VerifyPaymentRequest,
    current_user: User = Depends(get_current_active_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Verify the checkout's payment proof and settle the payment"""
    try:
        return await service.verify_payment(
            request.razorpay_order_id,
            request.razorpay_payment_id,
            request.razorpay_signature,
        )
    except NotFoundError:
        # Same answer as a bad signature, so intent ids cannot be probed
        logger.warning(
            "Verification for unknown payment intent",
            gateway_order_id=request.razorpay_order_id,
            user_id=str(current_user.id),
        )
        raise PaymentVerificationError()


@router.get("/order/{order_id}", response_model=PaymentResponse)
async def get_order_payment(
    order_id: UUID,
    current_user: User = Depends(get_current_active_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Get the current payment attempt for an order"""
    return await service.get_payment_for_order(current_user, order_id)
