"""Order management API endpoints"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User, UserRole
from app.schemas.order import (
    AssignDeliveryRequest,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from app.services.orders import OrderService
from app.api.auth import get_current_active_user, require_role

router = APIRouter()


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(db)


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    order_data: OrderCreate,
    current_user: User = Depends(get_current_active_user),
    service: OrderService = Depends(get_order_service),
):
    """Place a new order for the current user"""
    return await service.create_order(current_user, order_data)


@router.get("", response_model=OrderListResponse)
async def list_my_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    service: OrderService = Depends(get_order_service),
):
    """List the current user's orders, newest first"""
    return await service.list_customer_orders(current_user, page, page_size)


@router.get("/assigned", response_model=OrderListResponse)
async def list_assigned_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(require_role(UserRole.DELIVERY_PARTNER)),
    service: OrderService = Depends(get_order_service),
):
    """List orders assigned to the current delivery partner"""
    return await service.list_assigned_orders(current_user, page, page_size)


@router.get("/number/{order_number}", response_model=OrderResponse)
async def get_order_by_number(
    order_number: str,
    current_user: User = Depends(get_current_active_user),
    service: OrderService = Depends(get_order_service),
):
    return await service.get_order_by_number(current_user, order_number)


@router.get("/restaurant/{restaurant_id}", response_model=OrderListResponse)
async def list_restaurant_orders(
    restaurant_id: UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(require_role(UserRole.ADMIN, UserRole.RESTAURANT)),
    service: OrderService = Depends(get_order_service),
):
    """List a restaurant's orders (restaurant account or admin)"""
    return await service.list_restaurant_orders(current_user, restaurant_id, page, page_size)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    current_user: User = Depends(get_current_active_user),
    service: OrderService = Depends(get_order_service),
):
    """Get order details"""
    return await service.get_order(current_user, order_id)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: UUID,
    update_data: OrderStatusUpdate,
    current_user: User = Depends(get_current_active_user),
    service: OrderService = Depends(get_order_service),
):
    """Move an order to its next status"""
    return await service.update_status(current_user, order_id, update_data.status)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: UUID,
    current_user: User = Depends(get_current_active_user),
    service: OrderService = Depends(get_order_service),
):
    """Cancel an order that has not started preparation"""
    return await service.cancel_order(current_user, order_id)


@router.patch("/{order_id}/assign-delivery", response_model=OrderResponse)
async def assign_delivery_partner(
    order_id: UUID,
    assign_data: AssignDeliveryRequest,
    current_user: User = Depends(require_role(UserRole.ADMIN, UserRole.RESTAURANT)),
    service: OrderService = Depends(get_order_service),
):
    return await service.assign_delivery_agent(current_user, order_id, assign_data.delivery_partner_id)
