"""
Shared fixtures: an in-memory SQLite database per test and a TestClient
wired to it through the get_db dependency.
"""
import os

# Must be set before the application module creates its engine
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ecommerce_ms import models
from ecommerce_ms.database import Base, get_db
from ecommerce_ms.main import app


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def lenient_client(client):
    """Client that returns 500 responses instead of re-raising server errors."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def create_product(client):
    """Create a product through the API and return its JSON representation."""
    def _create(name="Laptop", price=999.99, stock=50):
        response = client.post("/product", json={"name": name, "price": price, "stock": stock})
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create


@pytest.fixture
def stock_of(session_factory):
    """Read a product's stock straight from the database."""
    def _stock_of(product_id):
        db = session_factory()
        try:
            return db.get(models.Product, product_id).stock
        finally:
            db.close()
    return _stock_of


@pytest.fixture
def order_count(session_factory):
    def _order_count():
        db = session_factory()
        try:
            return db.query(models.Order).count()
        finally:
            db.close()
    return _order_count
