"""Tests for the business-rule validators."""
from decimal import Decimal

from ecommerce_ms import schemas, validators


def test_valid_product():
    product = schemas.ProductCreate(name="Laptop", price=Decimal("999.99"), stock=0)
    assert validators.validate_product_input(product) == (True, "")


def test_product_price_ceiling():
    product = schemas.ProductCreate(name="Yacht", price=Decimal("1000000"), stock=1)
    is_valid, message = validators.validate_product_input(product)
    assert not is_valid
    assert message.startswith("Price exceeds maximum")


def test_valid_order():
    order = schemas.OrderCreate(product_id=1, quantity=1)
    assert validators.validate_order_input(order) == (True, "")


def test_order_product_checked_before_quantity():
    order = schemas.OrderCreate(product_id=0, quantity=0)
    assert validators.validate_order_input(order) == (False, "ProductId is required.")


def test_order_payload_accepts_camel_case():
    order = schemas.OrderCreate.model_validate({"productId": 7, "quantity": 3})
    assert order.product_id == 7
    assert order.quantity == 3


def test_price_with_three_decimals_is_accepted():
    product = schemas.ProductCreate(name="Screw", price=Decimal("0.125"), stock=1)
    assert validators.validate_product_input(product) == (True, "")


def test_price_finer_than_three_decimals_is_rejected():
    product = schemas.ProductCreate(name="Screw", price=Decimal("0.0004"), stock=1)
    assert validators.validate_product_input(product) == (
        False,
        "Price cannot have more than 3 decimal places.",
    )


def test_order_total_limit():
    assert validators.validate_order_total(Decimal("9999999.99")) == (True, "")
    assert validators.validate_order_total(Decimal("10000000.00"))[0] is False
