"""
SQLAlchemy ORM models for the e-commerce service.

Defines the database schema for product and order tables.
"""
from datetime import datetime, timezone
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String
from .database import Base


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Product(Base):
    """
    Product model representing a sellable item with its stock level.
    
    Attributes:
        product_id (int): Primary key, auto-incremented product ID
        name (str): Display name of the product
        price (Decimal): Unit price
        stock (int): Units currently available for sale (never negative)
        created_date (datetime): Timestamp when the product was created
        updated_date (datetime): Timestamp of the last modification
    """
    __tablename__ = "product_details"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_product_details_stock_non_negative"),
    )
    
    product_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(8000), nullable=False)
    price = Column(Numeric(9, 3), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    created_date = Column(DateTime, nullable=False, default=utcnow)
    updated_date = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Product(product_id={self.product_id}, name='{self.name}', stock={self.stock})>"


class Order(Base):
    """
    Order model representing the sale of a quantity of one product.

    The product reference is optional: an order outlives the product it was
    placed for, and its total price is the price at the moment of sale.
    
    Attributes:
        order_id (int): Primary key, auto-incremented order ID
        product_id (int): ID of the ordered product, or None once it is gone
        quantity (int): Number of units ordered
        total_price (Decimal): Unit price times quantity at order time
        order_date (datetime): When the order was placed
        created_date (datetime): Timestamp when the row was created
        updated_date (datetime): Timestamp of the last modification
    """
    __tablename__ = "order_details"
    
    order_id = Column(Integer, primary_key=True, index=True)
    product_id = Column(
        Integer,
        ForeignKey("product_details.product_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    quantity = Column(Integer, nullable=False)
    total_price = Column(Numeric(9, 2), nullable=True)
    order_date = Column(DateTime, nullable=False, default=utcnow)
    created_date = Column(DateTime, nullable=False, default=utcnow)
    updated_date = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Order(order_id={self.order_id}, product_id={self.product_id}, quantity={self.quantity})>"
