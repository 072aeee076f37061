#!/usr/bin/env python3
"""
Seed script to create a demo restaurant, menu, users and address
"""

import asyncio
import uuid
from decimal import Decimal


async def seed_demo_data():
    """Seed demo data for development"""
    from app.database import SessionLocal, engine, Base
    from app.models.address import Address
    from app.models.menu import Restaurant, MenuItem
    from app.models.user import User, UserRole
    from app.api.auth import create_access_token

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo restaurant already exists
        from sqlalchemy import select
        result = await db.execute(
            select(Restaurant).where(Restaurant.name == "Spice Route")
        )
        existing = result.scalar_one_or_none()

        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo users...")

        admin_user = User(
            id=uuid.uuid4(),
            email="admin@fooddelivery.dev",
            full_name="System Admin",
            role=UserRole.ADMIN,
            is_active=True,
        )
        owner = User(
            id=uuid.uuid4(),
            email="owner@spiceroute.dev",
            full_name="Spice Route",
            phone="+919800000010",
            role=UserRole.RESTAURANT,
            is_active=True,
        )
        customer = User(
            id=uuid.uuid4(),
            email="asha@example.com",
            full_name="Asha Rao",
            phone="+919800000001",
            role=UserRole.CUSTOMER,
            is_active=True,
        )
        rider = User(
            id=uuid.uuid4(),
            email="ravi@fooddelivery.dev",
            full_name="Ravi Kumar",
            phone="+919800000020",
            role=UserRole.DELIVERY_PARTNER,
            is_active=True,
        )
        db.add_all([admin_user, owner, customer, rider])
        await db.flush()

        # Create restaurant
        restaurant = Restaurant(
            id=uuid.uuid4(),
            owner_id=owner.id,
            name="Spice Route",
            cuisine="North Indian",
            city="Bengaluru",
            is_open=True,
            min_order=Decimal("200.00"),
            delivery_fee=Decimal("30.00"),
        )
        db.add(restaurant)
        await db.flush()

        print(f"Created restaurant: {restaurant.name} (ID: {restaurant.id})")

        address = Address(
            id=uuid.uuid4(),
            user_id=customer.id,
            street="12 MG Road",
            city="Bengaluru",
            state="Karnataka",
            pincode="560001",
            is_default=True,
        )
        db.add(address)

        print("Creating menu items...")

        menu_items = [
            # Starters
            {"name": "Paneer Tikka", "description": "Chargrilled cottage cheese with peppers", "price": "249.00", "category": "Starters", "is_veg": True},
            {"name": "Chicken 65", "description": "Spicy deep-fried chicken bites", "price": "229.00", "category": "Starters", "is_veg": False},
            {"name": "Samosa (2 pcs)", "description": "Potato and pea pastry with chutney", "price": "79.00", "category": "Starters", "is_veg": True},

            # Mains
            {"name": "Chicken Biryani", "description": "Hyderabadi dum biryani with raita", "price": "299.00", "category": "Mains", "is_veg": False},
            {"name": "Veg Biryani", "description": "Fragrant rice with seasonal vegetables", "price": "249.00", "category": "Mains", "is_veg": True},
            {"name": "Butter Chicken", "description": "Tandoori chicken in tomato butter gravy", "price": "329.00", "category": "Mains", "is_veg": False},
            {"name": "Dal Makhani", "description": "Slow-cooked black lentils", "price": "219.00", "category": "Mains", "is_veg": True},

            # Breads
            {"name": "Butter Naan", "description": "Tandoor-baked leavened bread", "price": "49.00", "category": "Breads", "is_veg": True},
            {"name": "Garlic Naan", "description": "Naan with garlic and coriander", "price": "59.00", "category": "Breads", "is_veg": True},

            # Desserts
            {"name": "Gulab Jamun", "description": "Milk dumplings in rose syrup", "price": "99.00", "category": "Desserts", "is_veg": True},

            # Drinks
            {"name": "Sweet Lassi", "description": "Chilled sweetened yoghurt", "price": "79.50", "category": "Drinks", "is_veg": True},
            {"name": "Masala Chai", "description": "Spiced milk tea", "price": "39.00", "category": "Drinks", "is_veg": True},
        ]

        for item_data in menu_items:
            db.add(
                MenuItem(
                    restaurant_id=restaurant.id,
                    name=item_data["name"],
                    description=item_data["description"],
                    price=Decimal(item_data["price"]),
                    category=item_data["category"],
                    is_veg=item_data["is_veg"],
                    is_available=True,
                )
            )

        await db.commit()

        print(f"Created {len(menu_items)} menu items")
        print(f"Customer address ID: {address.id}")
        print("\nDemo bearer tokens:")
        for user in (admin_user, owner, customer, rider):
            print(f"  {user.role.value:<17} {user.email}")
            print(f"    {create_access_token(user)}")
        print("\nDemo data seeded successfully!")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
