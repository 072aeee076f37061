"""
Payment service.

Creates gateway payment intents for placed orders and settles them from two
independent sources: the client-side checkout proof (``verify_payment``) and
the gateway's signed webhooks (``handle_webhook``). Both paths funnel into the
same conditional writes, so whichever arrives first settles the payment and
confirms the order, and every later delivery is a no-op. An order is paid
through at most one attempt: a capture arriving for any other attempt is left
unsettled and audited as a duplicate capture that needs a refund.
"""

import uuid
from typing import Optional
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.errors import (
    AlreadyPaidError,
    ConcurrentUpdateError,
    InvalidWebhookSignatureError,
    NotFoundError,
    PaymentVerificationError,
    PermissionDeniedError,
    ValidationError,
)
from app.models.order import Order, OrderStatus
from app.models.payment import SETTLEABLE_STATUSES, Payment, PaymentStatus
from app.models.user import User
from app.repositories import AuditRepository, OrderRepository, PaymentRepository
from app.schemas.payment import (
    PaymentIntentResponse,
    PaymentResponse,
    WebhookEvent,
    WebhookOutcome,
    WebhookPaymentEntity,
)
from app.services.gateway.base import BasePaymentGateway
from app.services.orders import can_view_order
from app.services.pricing import to_minor_units
from app.services.signatures import payment_signature, signatures_match, webhook_signature

logger = structlog.get_logger()

PAYMENT_CAPTURED = "payment.captured"
PAYMENT_FAILED = "payment.failed"
HANDLED_EVENTS = frozenset({PAYMENT_CAPTURED, PAYMENT_FAILED})

SIGNATURE_FAILURE_REASON = "signature verification failed"
DEFAULT_FAILURE_REASON = "payment failed"

OUTCOME_PROCESSED = "processed"
OUTCOME_DUPLICATE = "duplicate"
OUTCOME_IGNORED = "ignored"

# _settle results
SETTLED = "settled"
ALREADY_SETTLED = "already_settled"
DUPLICATE_CAPTURE = "duplicate_capture"


class PaymentService:
    """Payment intents, verification and webhook reconciliation"""

    def __init__(
        self,
        db: AsyncSession,
        gateway: BasePaymentGateway,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.gateway = gateway
        self.settings = settings or get_settings()
        self.orders = OrderRepository(db)
        self.payments = PaymentRepository(db)
        self.audit = AuditRepository(db)

    def _intent_response(self, order: Order, payment: Payment) -> PaymentIntentResponse:
        customer = order.customer
        return PaymentIntentResponse(
            payment_id=payment.id,
            order_id=order.id,
            order_number=order.order_number,
            gateway_order_id=payment.gateway_order_id,
            amount=payment.amount,
            amount_minor=to_minor_units(payment.amount),
            currency=payment.currency,
            status=payment.status,
            key_id=self.gateway.public_key_id,
            customer_name=customer.full_name if customer else None,
            customer_email=customer.email if customer else None,
            customer_phone=customer.phone if customer else None,
        )

    async def create_payment_intent(self, actor: User, order_id: UUID) -> PaymentIntentResponse:
        """
        Create (or reuse) the gateway payment intent for an order.

        The gateway is called before anything is written locally, so a
        gateway failure leaves no Payment row behind and the call can simply
        be retried.

        Raises:
            NotFoundError: unknown order
            PermissionDeniedError: caller is neither the customer nor an admin
            AlreadyPaidError: the order already has a successful payment
            ValidationError: the order is not awaiting payment
            GatewayError: the gateway could not create the intent
            ConcurrentUpdateError: a concurrent request created and then
                settled or failed the same attempt
        """
        order = await self.orders.get(order_id)
        if not order:
            raise NotFoundError("Order", "id", order_id)
        if not (actor.is_admin or order.customer_id == actor.id):
            raise PermissionDeniedError("Not allowed to pay for this order")

        if await self.payments.has_successful_payment(order.id):
            raise AlreadyPaidError()
        if order.status != OrderStatus.PLACED:
            raise ValidationError(f"Order cannot be paid in status {order.status.value}")

        latest = await self.payments.latest_for_order(order.id)
        if latest and latest.status == PaymentStatus.CREATED:
            logger.info(
                "Reusing open payment intent",
                order_id=str(order.id),
                gateway_order_id=latest.gateway_order_id,
            )
            return self._intent_response(order, latest)

        amount_minor = to_minor_units(order.total_amount)
        currency = self.settings.payment_currency

        gateway_order = await self.gateway.create_order(
            amount_minor,
            currency,
            receipt=order.order_number,
            notes={"order_id": str(order.id)},
        )

        payment = Payment(
            id=uuid.uuid4(),
            order_id=order.id,
            attempt=await self.payments.next_attempt(order.id),
            gateway_order_id=gateway_order.id,
            amount=order.total_amount,
            currency=currency,
            status=PaymentStatus.CREATED,
        )
        self.payments.add(payment)
        self.audit.record(
            "payment_created",
            "payment",
            payment.id,
            actor_id=actor.id,
            data={
                "order_id": str(order.id),
                "gateway_order_id": gateway_order.id,
                "amount_minor": amount_minor,
            },
        )
        try:
            await self.db.commit()
        except IntegrityError:
            # Another request created this attempt first; hand out its intent
            await self.db.rollback()
            logger.info(
                "Payment intent created concurrently, reusing it",
                order_id=str(order_id),
                discarded_gateway_order_id=gateway_order.id,
            )
            order = await self.orders.get(order_id)
            winner = await self.payments.latest_for_order(order_id)
            if not winner or winner.status != PaymentStatus.CREATED:
                raise ConcurrentUpdateError("Payment was modified concurrently, reload and retry")
            return self._intent_response(order, winner)

        logger.info(
            "Payment intent created",
            order_id=str(order.id),
            payment_id=str(payment.id),
            gateway=self.gateway.provider_name,
            gateway_order_id=gateway_order.id,
            amount_minor=amount_minor,
            attempt=payment.attempt,
        )
        return self._intent_response(order, payment)

    async def get_payment_for_order(self, actor: User, order_id: UUID) -> PaymentResponse:
        order = await self.orders.get(order_id)
        if not order:
            raise NotFoundError("Order", "id", order_id)
        if not can_view_order(actor, order):
            raise PermissionDeniedError()

        payment = await self.payments.governing_for_order(order.id)
        if not payment:
            raise NotFoundError("Payment", "order_id", order_id)
        return PaymentResponse.model_validate(payment)

    async def _settle(
        self,
        payment: Payment,
        gateway_payment_id: str,
        signature: Optional[str],
        source: str,
    ) -> str:
        """
        Mark a payment successful and confirm its order, each at most once.

        Returns SETTLED if this call moved the payment to SUCCESS,
        ALREADY_SETTLED if it was settled before, or DUPLICATE_CAPTURE if a
        different attempt for the same order holds the success. The caller
        commits.
        """
        payment_id = payment.id
        order_id = payment.order_id

        values = {"gateway_payment_id": gateway_payment_id, "failure_reason": None}
        if signature:
            values["gateway_signature"] = signature

        try:
            settled = await self.payments.mark_succeeded(payment, SETTLEABLE_STATUSES, **values)
        except IntegrityError:
            # A concurrent capture of another attempt won the per-order success index
            await self.db.rollback()
            settled = False

        if not settled:
            current = await self.payments.get(payment_id)
            if current.status not in SETTLEABLE_STATUSES:
                return ALREADY_SETTLED

            winner = await self.payments.governing_for_order(order_id)
            self.audit.record(
                "duplicate_capture",
                "payment",
                payment_id,
                actor_type="gateway" if source == "webhook" else "system",
                data={
                    "gateway_payment_id": gateway_payment_id,
                    "settled_payment_id": str(winner.id),
                    "source": source,
                },
            )
            logger.warning(
                "Capture for an order that is already paid, refund required",
                order_id=str(order_id),
                payment_id=str(payment_id),
                settled_payment_id=str(winner.id),
                source=source,
            )
            return DUPLICATE_CAPTURE

        self.audit.record(
            "payment_succeeded",
            "payment",
            payment_id,
            actor_type="gateway" if source == "webhook" else "system",
            data={"gateway_payment_id": gateway_payment_id, "source": source},
        )

        confirmed = await self.orders.compare_and_set_status(
            order_id, [OrderStatus.PLACED], OrderStatus.CONFIRMED
        )
        if confirmed:
            self.audit.record(
                "order_confirmed",
                "order",
                order_id,
                actor_type="system",
                data={"payment_id": str(payment_id), "source": source},
            )
        else:
            status = await self.orders.get_status(order_id)
            if status == OrderStatus.CANCELLED:
                logger.warning(
                    "Payment captured for a cancelled order, refund required",
                    order_id=str(order_id),
                    payment_id=str(payment_id),
                )

        logger.info(
            "Payment settled",
            payment_id=str(payment_id),
            order_id=str(order_id),
            source=source,
            order_confirmed=confirmed,
        )
        return SETTLED

    async def verify_payment(
        self,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> PaymentResponse:
        """
        Verify a checkout proof and settle the payment.

        A forged or mismatched proof is recorded (an open payment goes FAILED,
        plus an audit row) before PaymentVerificationError is raised. A genuine
        proof for an attempt whose order was already paid through another
        attempt is audited as a duplicate capture and raises AlreadyPaidError.
        """
        payment = await self.payments.get_by_gateway_order_id(gateway_order_id)
        if not payment:
            raise NotFoundError("Payment", "gateway_order_id", gateway_order_id)
        payment_id = payment.id

        expected = payment_signature(
            self.settings.razorpay_key_secret, gateway_order_id, gateway_payment_id
        )
        if not signatures_match(expected, signature):
            # Only an open attempt is failed, a gateway-reported reason is kept
            await self.payments.compare_and_set_status(
                payment_id,
                [PaymentStatus.CREATED],
                PaymentStatus.FAILED,
                failure_reason=SIGNATURE_FAILURE_REASON,
            )
            self.audit.record(
                "payment_verification_failed",
                "payment",
                payment_id,
                actor_type="system",
                data={
                    "gateway_order_id": gateway_order_id,
                    "gateway_payment_id": gateway_payment_id,
                },
            )
            await self.db.commit()

            logger.warning(
                "Payment signature verification failed",
                payment_id=str(payment_id),
                gateway_order_id=gateway_order_id,
            )
            raise PaymentVerificationError()

        outcome = await self._settle(payment, gateway_payment_id, signature, source="verify")
        await self.db.commit()

        if outcome == DUPLICATE_CAPTURE:
            raise AlreadyPaidError()
        if outcome == ALREADY_SETTLED:
            logger.info(
                "Payment already settled",
                payment_id=str(payment_id),
                gateway_order_id=gateway_order_id,
            )
        return PaymentResponse.model_validate(await self.payments.get(payment_id))

    async def handle_webhook(self, raw_body: bytes, signature_header: Optional[str]) -> WebhookOutcome:
        """
        Apply one gateway webhook delivery.

        Deliveries are at-least-once and may arrive before, after or without
        the client verification; every write is conditional, so replays
        report ``duplicate`` and change nothing.
        """
        expected = webhook_signature(self.settings.razorpay_webhook_secret, raw_body)
        if not signatures_match(expected, signature_header):
            logger.warning("Rejected webhook with invalid signature")
            raise InvalidWebhookSignatureError()

        try:
            event = WebhookEvent.model_validate_json(raw_body)
        except PydanticValidationError:
            raise ValidationError("Malformed webhook body")

        if event.event not in HANDLED_EVENTS:
            logger.info("Webhook event ignored", webhook_event=event.event)
            return WebhookOutcome(status=OUTCOME_IGNORED, event=event.event)

        try:
            entity = WebhookPaymentEntity.model_validate(event.payload["payment"]["entity"])
        except (KeyError, TypeError, PydanticValidationError):
            raise ValidationError(f"Malformed {event.event} payload")

        payment = await self.payments.get_by_gateway_order_id(entity.order_id)
        if not payment:
            logger.info(
                "Webhook for unknown payment intent",
                webhook_event=event.event,
                gateway_order_id=entity.order_id,
            )
            return WebhookOutcome(
                status=OUTCOME_IGNORED, event=event.event, gateway_order_id=entity.order_id
            )

        if event.event == PAYMENT_CAPTURED:
            settled = await self._settle(payment, entity.id, None, source="webhook")
            applied = settled == SETTLED
        else:
            reason = entity.error_description or DEFAULT_FAILURE_REASON
            applied = await self.payments.compare_and_set_status(
                payment.id,
                [PaymentStatus.CREATED],
                PaymentStatus.FAILED,
                gateway_payment_id=entity.id,
                failure_reason=reason,
            )
            if applied:
                self.audit.record(
                    "payment_failed",
                    "payment",
                    payment.id,
                    actor_type="gateway",
                    data={"gateway_payment_id": entity.id, "reason": reason},
                )

        await self.db.commit()

        outcome = OUTCOME_PROCESSED if applied else OUTCOME_DUPLICATE
        logger.info(
            "Webhook processed",
            webhook_event=event.event,
            gateway_order_id=entity.order_id,
            outcome=outcome,
        )
        return WebhookOutcome(status=outcome, event=event.event, gateway_order_id=entity.order_id)
