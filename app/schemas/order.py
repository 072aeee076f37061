"""Order schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel

from app.models.order import OrderStatus
from app.models.payment import PaymentStatus


class OrderItemCreate(BaseModel):
    """Create order item"""
    menu_item_id: UUID
    quantity: int
    special_instructions: Optional[str] = None


class OrderCreate(BaseModel):
    """Create order request"""
    restaurant_id: UUID
    items: List[OrderItemCreate]
    delivery_address_id: UUID
    delivery_instructions: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    """Update order status request"""
    status: OrderStatus


class AssignDeliveryRequest(BaseModel):
    """Assign delivery partner request"""
    delivery_partner_id: UUID


class OrderItemResponse(BaseModel):
    """Order item in response"""
    id: UUID
    menu_item_id: UUID
    menu_item_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    special_instructions: Optional[str]

    class Config:
        from_attributes = True
        frozen = True


class PaymentInfo(BaseModel):
    """Governing payment attempt, summarised on the order"""
    id: UUID
    gateway_order_id: str
    gateway_payment_id: Optional[str]
    amount: Decimal
    currency: str
    status: PaymentStatus

    class Config:
        from_attributes = True
        frozen = True


class OrderResponse(BaseModel):
    """Order response (a read-time snapshot, not a live object)"""
    id: UUID
    order_number: str
    customer_id: UUID
    customer_name: Optional[str]
    restaurant_id: UUID
    restaurant_name: Optional[str]
    items: List[OrderItemResponse]
    subtotal: Decimal
    tax: Decimal
    delivery_fee: Decimal
    total_amount: Decimal
    status: OrderStatus
    delivery_address: Optional[str]
    delivery_instructions: Optional[str]
    delivery_partner_id: Optional[UUID]
    delivery_partner_name: Optional[str]
    payment: Optional[PaymentInfo]
    estimated_delivery_time: Optional[datetime]
    actual_delivery_time: Optional[datetime]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        frozen = True


class OrderListResponse(BaseModel):
    """Paginated order list"""
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int
