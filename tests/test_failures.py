"""Database failures surface as 500 responses and leave no partial state."""
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from ecommerce_ms import crud, schemas


def database_locked(*args, **kwargs):
    raise OperationalError("UPDATE product_details", {}, Exception("database is locked"))


@pytest.fixture
def product(db_session):
    return crud.create_product(
        db_session,
        schemas.ProductCreate(name="Laptop", price=Decimal("999.99"), stock=50),
    )


def test_failed_commit_on_order_returns_500(lenient_client, product, stock_of, order_count, monkeypatch):
    product_id = product.product_id
    monkeypatch.setattr(Session, "commit", database_locked)

    response = lenient_client.post("/order", json={"productId": product_id, "quantity": 2})

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Failed to create order."}
    assert stock_of(product_id) == 50
    assert order_count() == 0


def test_failed_stock_update_on_order_returns_500(lenient_client, product, stock_of, order_count, monkeypatch):
    product_id = product.product_id
    monkeypatch.setattr(crud, "deduct_stock", database_locked)

    response = lenient_client.post("/order", json={"productId": product_id, "quantity": 2})

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Failed to create order."}
    assert stock_of(product_id) == 50
    assert order_count() == 0


def test_failed_stock_restore_on_order_update_returns_500(lenient_client, product, stock_of, monkeypatch):
    product_id = product.product_id
    order_id = lenient_client.post("/order", json={"productId": product_id, "quantity": 2}).json()["data"]["orderId"]
    monkeypatch.setattr(crud, "restore_stock", database_locked)

    response = lenient_client.put(f"/order/{order_id}", json={"productId": product_id, "quantity": 5})

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Failed to update order."}
    assert stock_of(product_id) == 48
    assert lenient_client.get(f"/order/{order_id}").json()["quantity"] == 2


def test_failed_product_delete_returns_500(lenient_client, product, monkeypatch):
    product_id = product.product_id
    monkeypatch.setattr(Session, "commit", database_locked)

    response = lenient_client.delete(f"/product/{product_id}")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Failed to delete product."}
    monkeypatch.undo()
    assert lenient_client.get(f"/product/{product_id}").status_code == 200


def test_failed_read_returns_500(lenient_client, monkeypatch):
    monkeypatch.setattr(crud, "get_order_details", database_locked)

    response = lenient_client.get("/order")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Database error."}
