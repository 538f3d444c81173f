"""
Pydantic schemas for request/response validation in the e-commerce service.

These schemas define the structure of data for API requests and responses.
JSON keys are camelCase (productId, totalPrice, ...) to match the admin UI.
"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Generic, Optional, TypeVar
from pydantic import BaseModel, Field, PlainSerializer
from pydantic.alias_generators import to_camel

# Decimals are stored exactly but rendered as JSON numbers
Money = Annotated[Decimal, PlainSerializer(lambda value: float(value), return_type=float, when_used="json")]

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base schema mapping snake_case fields to camelCase JSON keys."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class ProductBase(CamelModel):
    """Base schema with common product attributes."""
    name: str = ""
    price: Money = Decimal("0")
    stock: int = 0


class ProductCreate(ProductBase):
    """
    Schema for creating a new product.

    Missing fields fall back to empty/zero values so the business validators
    can reject them with a descriptive message.
    """
    pass


class ProductUpdate(ProductBase):
    """Schema for updating a product. All fields are overwritten."""
    pass


class Product(ProductBase):
    """
    Schema for product responses, includes all database fields.
    
    Attributes:
        product_id (int): Product's unique identifier
        name (str): Display name
        price (Decimal): Unit price
        stock (int): Units available
        created_date (datetime): When the product was created
        updated_date (datetime): When the product was last modified
    """
    product_id: int
    created_date: datetime
    updated_date: datetime


class OrderCreate(CamelModel):
    """Schema for placing an order for a quantity of one product."""
    product_id: int = Field(default=0, description="ID of the product to order")
    quantity: int = Field(default=0, description="Number of units ordered")


class OrderUpdate(OrderCreate):
    """Schema for updating an order's product and quantity."""
    pass


class OrderDetail(CamelModel):
    """
    Schema for order responses, joined with the product's display name.

    Attributes:
        order_id (int): Order's unique identifier
        product_id (int): Ordered product, None when the reference was cleared
        product_name (str): Product name, None when the product no longer exists
        quantity (int): Units ordered
        total_price (Decimal): Price at the time of sale
        order_date (datetime): When the order was placed
    """
    order_id: int
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    quantity: int
    total_price: Optional[Money] = None
    order_date: datetime


class OrderResult(OrderDetail):
    """Order projection returned by create/update, with the product's stock after the change."""
    remaining_stock: int


class MessageResponse(CamelModel):
    """Envelope returned by every mutation and every failed request."""
    success: bool = True
    message: str


class ApiResponse(MessageResponse, Generic[DataT]):
    """Envelope carrying the affected entity."""
    data: Optional[DataT] = None
