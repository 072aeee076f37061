"""Catalog models: restaurants and their menu items"""

import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Numeric, Text, Uuid
from sqlalchemy.orm import relationship

from app.database import Base


class Restaurant(Base):
    """Restaurants accepting orders"""
    __tablename__ = "restaurants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id"))
    name = Column(String(255), nullable=False)
    cuisine = Column(String(100))
    city = Column(String(100))
    is_open = Column(Boolean, default=True)  # Accepting orders right now
    is_active = Column(Boolean, default=True)

    # Ordering policy
    min_order = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User")
    menu_items = relationship("MenuItem", back_populates="restaurant", cascade="all, delete-orphan")


class MenuItem(Base):
    """Menu items"""
    __tablename__ = "menu_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(Uuid, ForeignKey("restaurants.id"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(100))  # Starters, Mains, Desserts, Drinks, etc.
    is_available = Column(Boolean, default=True)  # Temporary availability
    is_veg = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="menu_items")
