"""
Business-rule validation for product and order payloads.

These checks run before any database access so that a rejected request
never leaves partial state behind.
"""
from decimal import Decimal
from typing import Tuple
from . import schemas

# Limits of the database columns (32-bit integers, Numeric(9, 3) prices,
# Numeric(9, 2) order totals)
MAX_ID = 2**31 - 1
MAX_STOCK = 2**31 - 1
MAX_QUANTITY = 10000
PRICE_STEP = Decimal("0.001")
MAX_PRICE = Decimal("999999.999")
MAX_ORDER_TOTAL = Decimal("9999999.99")


def validate_product_input(product: schemas.ProductBase) -> Tuple[bool, str]:
    """
    Validate product data for create and update.

    Args:
        product: Product payload

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not product.name or not product.name.strip():
        return False, "Name is required."

    if product.price <= Decimal("0"):
        return False, "Price must be greater than 0."

    if product.price > MAX_PRICE:
        return False, "Price exceeds maximum (999,999.999)."

    if product.price != product.price.quantize(PRICE_STEP):
        return False, "Price cannot have more than 3 decimal places."

    if product.stock < 0:
        return False, "Stock cannot be negative."

    if product.stock > MAX_STOCK:
        return False, f"Stock exceeds maximum ({MAX_STOCK})."

    return True, ""


def validate_order_input(order: schemas.OrderCreate) -> Tuple[bool, str]:
    """
    Validate the shape of an order request.

    Product existence and stock are checked later, against the database.

    Args:
        order: Order payload (create or update)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if order.product_id <= 0:
        return False, "ProductId is required."

    if order.product_id > MAX_ID:
        return False, "Invalid ProductId."

    if order.quantity <= 0:
        return False, "Quantity must be greater than 0."

    if order.quantity > MAX_QUANTITY:
        return False, f"Quantity exceeds maximum ({MAX_QUANTITY})."

    return True, ""


def validate_order_total(total: Decimal) -> Tuple[bool, str]:
    """
    Validate that a computed order total fits the stored total column.

    Args:
        total: Unit price times quantity, rounded to cents

    Returns:
        Tuple of (is_valid, error_message)
    """
    if total > MAX_ORDER_TOTAL:
        return False, "Order total exceeds maximum (9,999,999.99)."

    return True, ""
