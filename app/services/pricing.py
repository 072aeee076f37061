"""
Money and pricing.

Pure functions over ``Decimal``; nothing here touches the database or the
network. Tax is the only rounded figure (half-up to two places), line totals
and the subtotal are exact sums.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple

from app.errors import ValidationError

TWO_PLACES = Decimal("0.01")
MINOR_UNITS_PER_MAJOR = 100
DEFAULT_TAX_RATE = Decimal("0.05")


@dataclass(frozen=True)
class PricingPolicy:
    """Restaurant policy in force at order time"""
    minimum_order: Decimal
    delivery_fee: Decimal
    tax_rate: Decimal = DEFAULT_TAX_RATE


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    tax: Decimal
    delivery_fee: Decimal
    total: Decimal


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    """Exact price of one order line"""
    if quantity <= 0:
        raise ValidationError(f"Quantity must be positive, got {quantity}")
    return Decimal(unit_price) * quantity


def compute_tax(subtotal: Decimal, tax_rate: Decimal) -> Decimal:
    return (subtotal * tax_rate).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def price_order(lines: Iterable[Tuple[Decimal, int]], policy: PricingPolicy) -> PriceBreakdown:
    """
    Price a cart.

    Args:
        lines: (unit_price, quantity) pairs
        policy: minimum order, flat delivery fee and tax rate

    Raises:
        ValidationError: empty cart, non-positive quantity, or subtotal below
            the restaurant's minimum order
    """
    lines = list(lines)
    if not lines:
        raise ValidationError("Order must contain at least one item")

    subtotal = sum((line_total(price, qty) for price, qty in lines), Decimal("0"))

    minimum = Decimal(policy.minimum_order)
    if subtotal < minimum:
        raise ValidationError(f"Minimum order amount is ₹{minimum}")

    tax = compute_tax(subtotal, policy.tax_rate)
    delivery_fee = Decimal(policy.delivery_fee)

    return PriceBreakdown(
        subtotal=subtotal,
        tax=tax,
        delivery_fee=delivery_fee,
        total=subtotal + tax + delivery_fee,
    )


def to_minor_units(amount: Decimal) -> int:
    """
    Convert a major-unit amount (rupees) to gateway minor units (paise).

    The conversion is exact or it fails; amounts with sub-paise precision are
    rejected instead of being truncated.
    """
    amount = Decimal(amount)
    if amount <= 0:
        raise ValidationError(f"Payable amount must be positive, got {amount}")

    scaled = amount * MINOR_UNITS_PER_MAJOR
    if scaled != scaled.to_integral_value():
        raise ValidationError(f"Amount {amount} cannot be represented in minor units")
    return int(scaled)
