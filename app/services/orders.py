"""
Order service.

Creation, lookups, listing and every status change of an order. Each
operation receives the calling user explicitly and decides access itself;
nothing here reads request state.
"""

import uuid
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.errors import (
    ClosedRestaurantError,
    ConcurrentUpdateError,
    CrossRestaurantError,
    NonCancellableError,
    NotFoundError,
    PermissionDeniedError,
    RoleMismatchError,
    UnavailableItemError,
    ValidationError,
)
from app.models.order import CANCELLABLE_STATUSES, Order, OrderItem, OrderStatus, validate_transition
from app.models.payment import governing_payment
from app.models.user import User, UserRole
from app.repositories import AuditRepository, CatalogRepository, OrderRepository, PaymentRepository
from app.schemas.order import (
    OrderCreate,
    OrderItemResponse,
    OrderListResponse,
    OrderResponse,
    PaymentInfo,
)
from app.services.pricing import PricingPolicy, line_total, price_order

logger = structlog.get_logger()


def order_to_response(order: Order) -> OrderResponse:
    """Snapshot a fully loaded order into its response shape"""
    payment = governing_payment(order.payments)
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        customer_id=order.customer_id,
        customer_name=order.customer.full_name if order.customer else None,
        restaurant_id=order.restaurant_id,
        restaurant_name=order.restaurant.name if order.restaurant else None,
        items=[OrderItemResponse.model_validate(item) for item in order.items],
        subtotal=order.subtotal,
        tax=order.tax,
        delivery_fee=order.delivery_fee,
        total_amount=order.total_amount,
        status=order.status,
        delivery_address=order.delivery_address.formatted() if order.delivery_address else None,
        delivery_instructions=order.delivery_instructions,
        delivery_partner_id=order.delivery_partner_id,
        delivery_partner_name=order.delivery_partner.full_name if order.delivery_partner else None,
        payment=PaymentInfo.model_validate(payment) if payment else None,
        estimated_delivery_time=order.estimated_delivery_time,
        actual_delivery_time=order.actual_delivery_time,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _owns_restaurant(actor: User, order: Order) -> bool:
    return order.restaurant is not None and order.restaurant.owner_id == actor.id


def can_view_order(actor: User, order: Order) -> bool:
    """Admin, the ordering customer, the restaurant account, or the assigned partner"""
    return (
        actor.is_admin
        or order.customer_id == actor.id
        or _owns_restaurant(actor, order)
        or (order.delivery_partner_id is not None and order.delivery_partner_id == actor.id)
    )


def _check_page(page: int, page_size: int) -> None:
    if page < 1 or page_size < 1:
        raise ValidationError("page and page_size must be positive")


class OrderService:
    """Order lifecycle operations"""

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.orders = OrderRepository(db)
        self.payments = PaymentRepository(db)
        self.catalog = CatalogRepository(db)
        self.audit = AuditRepository(db)

    async def _load(self, order_id: UUID) -> Order:
        order = await self.orders.get(order_id)
        if not order:
            raise NotFoundError("Order", "id", order_id)
        return order

    async def _load_visible(self, actor: User, order_id: UUID) -> Order:
        order = await self._load(order_id)
        if not can_view_order(actor, order):
            raise PermissionDeniedError()
        return order

    async def _respond(self, order_id: UUID) -> OrderResponse:
        return order_to_response(await self._load(order_id))

    async def create_order(self, actor: User, request: OrderCreate) -> OrderResponse:
        """
        Validate a cart against the catalog, price it, and persist a PLACED order.

        Nothing is written unless every check passes. Unit prices and item
        names are copied onto the order lines so later menu edits never
        change an existing order.
        """
        restaurant = await self.catalog.get_restaurant(request.restaurant_id)
        if not restaurant:
            raise NotFoundError("Restaurant", "id", request.restaurant_id)
        if not restaurant.is_open:
            raise ClosedRestaurantError()

        address = await self.catalog.get_address(request.delivery_address_id)
        if not address or address.user_id != actor.id:
            raise NotFoundError("Address", "id", request.delivery_address_id)

        menu = await self.catalog.get_menu_items(line.menu_item_id for line in request.items)

        lines: List[OrderItem] = []
        for position, line in enumerate(request.items):
            item = menu.get(line.menu_item_id)
            if not item:
                raise NotFoundError("MenuItem", "id", line.menu_item_id)
            if not item.is_available:
                raise UnavailableItemError(item.name)
            if item.restaurant_id != restaurant.id:
                raise CrossRestaurantError()

            lines.append(
                OrderItem(
                    id=uuid.uuid4(),
                    menu_item_id=item.id,
                    position=position,
                    menu_item_name=item.name,
                    quantity=line.quantity,
                    unit_price=item.price,
                    total_price=line_total(item.price, line.quantity),
                    special_instructions=line.special_instructions,
                )
            )

        price = price_order(
            ((line.unit_price, line.quantity) for line in lines),
            PricingPolicy(
                minimum_order=restaurant.min_order,
                delivery_fee=restaurant.delivery_fee,
                tax_rate=self.settings.tax_rate,
            ),
        )

        now = datetime.utcnow()
        order = Order(
            id=uuid.uuid4(),
            customer_id=actor.id,
            restaurant_id=restaurant.id,
            delivery_address_id=address.id,
            subtotal=price.subtotal,
            tax=price.tax,
            delivery_fee=price.delivery_fee,
            total_amount=price.total,
            status=OrderStatus.PLACED,
            delivery_instructions=request.delivery_instructions,
            estimated_delivery_time=now + timedelta(minutes=self.settings.delivery_lead_minutes),
            items=lines,
        )
        self.orders.add(order)
        self.audit.record(
            "order_created",
            "order",
            order.id,
            actor_id=actor.id,
            data={"restaurant_id": str(restaurant.id), "total_amount": str(price.total)},
        )
        await self.db.commit()

        logger.info(
            "Order created",
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=str(actor.id),
            restaurant_id=str(restaurant.id),
            total_amount=str(price.total),
            lines=len(lines),
        )
        return await self._respond(order.id)

    async def get_order(self, actor: User, order_id: UUID) -> OrderResponse:
        return order_to_response(await self._load_visible(actor, order_id))

    async def get_order_by_number(self, actor: User, order_number: str) -> OrderResponse:
        order = await self.orders.get_by_number(order_number)
        if not order:
            raise NotFoundError("Order", "order_number", order_number)
        if not can_view_order(actor, order):
            raise PermissionDeniedError()
        return order_to_response(order)

    async def list_customer_orders(self, actor: User, page: int = 1, page_size: int = 20) -> OrderListResponse:
        _check_page(page, page_size)
        orders, total = await self.orders.list_page(page, page_size, customer_id=actor.id)
        return OrderListResponse(
            items=[order_to_response(o) for o in orders],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def list_restaurant_orders(
        self,
        actor: User,
        restaurant_id: UUID,
        page: int = 1,
        page_size: int = 20,
    ) -> OrderListResponse:
        _check_page(page, page_size)
        restaurant = await self.catalog.get_restaurant(restaurant_id)
        if not restaurant:
            raise NotFoundError("Restaurant", "id", restaurant_id)
        if not (actor.is_admin or restaurant.owner_id == actor.id):
            raise PermissionDeniedError("Not allowed to view this restaurant's orders")

        orders, total = await self.orders.list_page(page, page_size, restaurant_id=restaurant_id)
        return OrderListResponse(
            items=[order_to_response(o) for o in orders],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def list_assigned_orders(self, actor: User, page: int = 1, page_size: int = 20) -> OrderListResponse:
        _check_page(page, page_size)
        if actor.role != UserRole.DELIVERY_PARTNER:
            raise PermissionDeniedError("Only delivery partners have assigned orders")

        orders, total = await self.orders.list_page(page, page_size, delivery_partner_id=actor.id)
        return OrderListResponse(
            items=[order_to_response(o) for o in orders],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def update_status(self, actor: User, order_id: UUID, requested: OrderStatus) -> OrderResponse:
        """
        Move an order along the state machine.

        The write is conditional on the status read here; if another request
        changed it in between, ConcurrentUpdateError is raised and nothing is
        written.
        """
        order = await self._load(order_id)
        allowed = (
            actor.is_admin
            or _owns_restaurant(actor, order)
            or (order.delivery_partner_id is not None and order.delivery_partner_id == actor.id)
        )
        if not allowed:
            raise PermissionDeniedError("Not allowed to update this order")

        current = order.status
        validate_transition(current, requested)

        values = {}
        if requested == OrderStatus.DELIVERED:
            values["actual_delivery_time"] = datetime.utcnow()

        swapped = await self.orders.compare_and_set_status(order.id, [current], requested, **values)
        if not swapped:
            await self.db.rollback()
            logger.warning(
                "Order status changed concurrently",
                order_id=str(order_id),
                expected=current.value,
                requested=requested.value,
            )
            raise ConcurrentUpdateError()

        self.audit.record(
            "order_status_changed",
            "order",
            order.id,
            actor_id=actor.id,
            data={"from": current.value, "to": requested.value},
        )
        await self.db.commit()

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            from_status=current.value,
            to_status=requested.value,
            actor_id=str(actor.id),
        )
        return await self._respond(order.id)

    async def cancel_order(self, actor: User, order_id: UUID) -> OrderResponse:
        order = await self._load(order_id)
        if not (actor.is_admin or order.customer_id == actor.id or _owns_restaurant(actor, order)):
            raise PermissionDeniedError("Not allowed to cancel this order")

        if not order.is_cancellable:
            raise NonCancellableError()

        previous = order.status
        swapped = await self.orders.compare_and_set_status(
            order.id, CANCELLABLE_STATUSES, OrderStatus.CANCELLED
        )
        if not swapped:
            # Moved past the cancellable window since we read it
            await self.db.rollback()
            raise NonCancellableError()

        if await self.payments.has_successful_payment(order.id):
            logger.warning(
                "Cancelled order has a successful payment, refund required",
                order_id=str(order.id),
            )

        self.audit.record(
            "order_cancelled",
            "order",
            order.id,
            actor_id=actor.id,
            data={"from": previous.value},
        )
        await self.db.commit()

        logger.info("Order cancelled", order_id=str(order.id), actor_id=str(actor.id))
        return await self._respond(order.id)

    async def assign_delivery_agent(self, actor: User, order_id: UUID, agent_id: UUID) -> OrderResponse:
        order = await self._load(order_id)
        if not (actor.is_admin or _owns_restaurant(actor, order)):
            raise PermissionDeniedError("Not allowed to assign a delivery partner to this order")

        agent = await self.catalog.get_user(agent_id)
        if not agent:
            raise NotFoundError("User", "id", agent_id)
        if agent.role != UserRole.DELIVERY_PARTNER:
            raise RoleMismatchError()

        if order.is_terminal:
            raise ValidationError(f"Cannot assign a delivery partner to a {order.status.value} order")

        assigned = await self.orders.set_delivery_partner(order.id, agent.id)
        if not assigned:
            await self.db.rollback()
            raise ValidationError("Cannot assign a delivery partner to a completed order")

        self.audit.record(
            "delivery_partner_assigned",
            "order",
            order.id,
            actor_id=actor.id,
            data={"delivery_partner_id": str(agent.id)},
        )
        await self.db.commit()

        logger.info(
            "Delivery partner assigned",
            order_id=str(order.id),
            delivery_partner_id=str(agent.id),
        )
        return await self._respond(order.id)
