"""
CRUD (Create, Read, Update, Delete) operations for the e-commerce service.

This module contains all database operations for product and order
management, including the order workflow that checks and adjusts stock.
"""
from contextlib import contextmanager
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
import logging
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from . import models, schemas, validators
from .exceptions import (
    InsufficientStock,
    InvalidInput,
    InvalidReference,
    PersistenceError,
    ServiceError,
)

# Set up logging
logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


@contextmanager
def transaction(db: Session, action: str):
    """
    Run a unit of work and commit it, or roll all of it back.

    A ServiceError raised inside the block rolls back and propagates as is.
    A database error from any statement in the block, or from the commit,
    rolls back and is re-raised as PersistenceError.

    Args:
        db: Database session
        action: What was being saved, used in the error message

    Raises:
        PersistenceError: If any database statement or the commit failed
    """
    try:
        yield
        db.commit()
    except ServiceError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action}: {e}")
        raise PersistenceError(f"Failed to {action}.") from e


def compute_total(price: Decimal, quantity: int) -> Decimal:
    """Total price of an order line, rounded to cents."""
    return (Decimal(price) * quantity).quantize(CENTS, rounding=ROUND_HALF_UP)


def get_product(db: Session, product_id: int) -> Optional[models.Product]:
    """
    Retrieve a single product by ID.

    Args:
        db: Database session
        product_id: ID of the product to retrieve

    Returns:
        Product object or None if not found
    """
    return db.query(models.Product).filter(models.Product.product_id == product_id).first()


def get_products(db: Session, skip: int = 0, limit: int = 100) -> List[models.Product]:
    """
    Retrieve a list of products with pagination.

    Args:
        db: Database session
        skip: Number of records to skip (offset)
        limit: Maximum number of records to return

    Returns:
        List of Product objects
    """
    return (
        db.query(models.Product)
        .order_by(models.Product.product_id)
        .offset(skip)
        .limit(limit)
        .all()
    )


def create_product(db: Session, product: schemas.ProductCreate) -> models.Product:
    """
    Create a new product in the database.

    NOTE: This function assumes validation has already been performed.
    Use validators.validate_product_input() before calling this function.

    Args:
        db: Database session
        product: Product data to create

    Returns:
        Created Product object
    """
    now = models.utcnow()
    db_product = models.Product(
        name=product.name.strip(),
        price=product.price,
        stock=product.stock,
        created_date=now,
        updated_date=now,
    )
    with transaction(db, "create product"):
        db.add(db_product)
    db.refresh(db_product)
    logger.info(f"Created product {db_product.product_id} '{db_product.name}' with stock {db_product.stock}")
    return db_product


def update_product(db: Session, product_id: int, product: schemas.ProductUpdate) -> Optional[models.Product]:
    """
    Overwrite an existing product's name, price and stock.

    Args:
        db: Database session
        product_id: ID of the product to update
        product: Updated product data

    Returns:
        Updated Product object or None if not found
    """
    with transaction(db, "update product"):
        db_product = get_product(db, product_id)
        if db_product is None:
            return None

        db_product.name = product.name.strip()
        db_product.price = product.price
        db_product.stock = product.stock
        db_product.updated_date = models.utcnow()

    db.refresh(db_product)
    logger.info(f"Updated product {product_id}")
    return db_product


def delete_product(db: Session, product_id: int) -> bool:
    """
    Delete a product from the database.

    Orders that reference the product keep their quantity and total price;
    their product reference is cleared in the same transaction.

    Args:
        db: Database session
        product_id: ID of the product to delete

    Returns:
        True if product was deleted, False if not found
    """
    with transaction(db, "delete product"):
        db_product = get_product(db, product_id)
        if db_product is None:
            return False

        detached = (
            db.query(models.Order)
            .filter(models.Order.product_id == product_id)
            .update({models.Order.product_id: None}, synchronize_session=False)
        )
        db.delete(db_product)

    logger.info(f"Deleted product {product_id}; cleared reference on {detached} orders")
    return True


def lock_product(db: Session, product_id: int) -> Optional[models.Product]:
    """
    Load a product and lock its row until the transaction ends.

    On SQLite, SQLAlchemy leaves out the FOR UPDATE clause; the conditional
    update in deduct_stock is what keeps stock from going negative there.
    """
    return (
        db.query(models.Product)
        .filter(models.Product.product_id == product_id)
        .with_for_update()
        .first()
    )


def lock_products(db: Session, product_ids: List[int]) -> List[models.Product]:
    """
    Load and lock several products, always in ascending ID order.

    Two transactions locking the same pair of products therefore take the
    locks in the same order and cannot deadlock each other.
    """
    return (
        db.query(models.Product)
        .filter(models.Product.product_id.in_(sorted(product_ids)))
        .order_by(models.Product.product_id)
        .with_for_update()
        .all()
    )


def deduct_stock(db: Session, product_id: int, quantity: int) -> None:
    """
    Atomically subtract quantity from a product's stock.

    Args:
        db: Database session
        product_id: Product to deduct from
        quantity: Units to remove

    Raises:
        InsufficientStock: If the product has fewer than quantity units left.
            Nothing is changed; the enclosing transaction rolls back.
    """
    result = db.execute(
        update(models.Product)
        .where(models.Product.product_id == product_id)
        .where(models.Product.stock >= quantity)
        .values(stock=models.Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning(f"Insufficient stock for product {product_id}: requested {quantity}")
        raise InsufficientStock("Insufficient stock.")


def restore_stock(db: Session, product_id: int, quantity: int) -> None:
    """
    Give quantity units back to a product's stock.

    Args:
        db: Database session
        product_id: Product to restore to (missing products are ignored)
        quantity: Units to add back
    """
    db.execute(
        update(models.Product)
        .where(models.Product.product_id == product_id)
        .values(stock=models.Product.stock + quantity)
        .execution_options(synchronize_session=False)
    )


def checked_total(price: Decimal, quantity: int) -> Decimal:
    """
    Order total for price x quantity, rejected if it does not fit the column.

    Raises:
        InvalidInput: If the total exceeds the maximum order total
    """
    total = compute_total(price, quantity)
    is_valid, error_message = validators.validate_order_total(total)
    if not is_valid:
        logger.warning(f"Order rejected: total {total} for {quantity} units is too large")
        raise InvalidInput(error_message)
    return total


def order_details_query(db: Session):
    """
    Orders joined with their product's name.

    The outer join keeps orders whose product reference is empty or no longer
    resolves; their product_name is None.
    """
    return (
        db.query(
            models.Order.order_id,
            models.Order.product_id,
            models.Product.name.label("product_name"),
            models.Order.quantity,
            models.Order.total_price,
            models.Order.order_date,
        )
        .outerjoin(models.Product, models.Order.product_id == models.Product.product_id)
    )


def get_order(db: Session, order_id: int) -> Optional[models.Order]:
    """
    Retrieve a single order row by ID.

    Args:
        db: Database session
        order_id: ID of the order to retrieve

    Returns:
        Order object or None if not found
    """
    return db.query(models.Order).filter(models.Order.order_id == order_id).first()


def get_order_detail(db: Session, order_id: int):
    """
    Retrieve a single order joined with its product name.

    Args:
        db: Database session
        order_id: ID of the order to retrieve

    Returns:
        Row with order_id, product_id, product_name, quantity, total_price,
        order_date, or None if not found
    """
    return order_details_query(db).filter(models.Order.order_id == order_id).first()


def get_order_details(db: Session, skip: int = 0, limit: int = 100) -> List:
    """
    Retrieve a list of orders joined with their product names, with pagination.

    Args:
        db: Database session
        skip: Number of records to skip (offset)
        limit: Maximum number of records to return

    Returns:
        List of rows (see get_order_detail)
    """
    return (
        order_details_query(db)
        .order_by(models.Order.order_id)
        .offset(skip)
        .limit(limit)
        .all()
    )


def to_order_result(db_order: models.Order, product: models.Product) -> schemas.OrderResult:
    """Compose the response for a created or updated order."""
    return schemas.OrderResult(
        order_id=db_order.order_id,
        product_id=db_order.product_id,
        product_name=product.name,
        quantity=db_order.quantity,
        total_price=db_order.total_price,
        order_date=db_order.order_date,
        remaining_stock=product.stock,
    )


def create_order(db: Session, order: schemas.OrderCreate) -> schemas.OrderResult:
    """
    Place an order: check stock, deduct it and record the order in one commit.

    NOTE: This function assumes the payload shape has already been validated.
    Use validators.validate_order_input() before calling this function.

    Args:
        db: Database session
        order: Product ID and quantity to order

    Returns:
        The created order with the product's name and remaining stock

    Raises:
        InvalidReference: If the product does not exist
        InsufficientStock: If the product has fewer units than requested
        InvalidInput: If the order total is too large to record
        PersistenceError: If any database statement or the commit failed
            (no stock is deducted)
    """
    with transaction(db, "create order"):
        product = lock_product(db, order.product_id)
        if product is None:
            logger.warning(f"Order rejected: product {order.product_id} does not exist")
            raise InvalidReference("Invalid ProductId.")

        if product.stock < order.quantity:
            logger.warning(
                f"Order rejected: product {product.product_id} has {product.stock} in stock, "
                f"{order.quantity} requested"
            )
            raise InsufficientStock("Insufficient stock.")

        total = checked_total(product.price, order.quantity)

        # Guards against a concurrent order having taken the stock since the read
        deduct_stock(db, product.product_id, order.quantity)

        now = models.utcnow()
        db_order = models.Order(
            product_id=product.product_id,
            quantity=order.quantity,
            total_price=total,
            order_date=now,
            created_date=now,
            updated_date=now,
        )
        db.add(db_order)

    logger.info(
        f"Created order {db_order.order_id}: {order.quantity} x product {product.product_id}, "
        f"total {db_order.total_price}, stock left {product.stock}"
    )
    return to_order_result(db_order, product)


def update_order(db: Session, order_id: int, order: schemas.OrderUpdate) -> Optional[schemas.OrderResult]:
    """
    Re-point an order at a product and quantity, reconciling stock.

    The previous quantity goes back to the previous product and the new
    quantity is taken from the new product, in one commit. The total price is
    recomputed from the product's current price.

    Args:
        db: Database session
        order_id: ID of the order to update
        order: New product ID and quantity

    Returns:
        The updated order, or None if the order does not exist

    Raises:
        InvalidReference: If the product does not exist
        InsufficientStock: If the new product cannot cover the new quantity
        InvalidInput: If the order total is too large to record
        PersistenceError: If any database statement or the commit failed
    """
    with transaction(db, "update order"):
        db_order = (
            db.query(models.Order)
            .filter(models.Order.order_id == order_id)
            .with_for_update()
            .first()
        )
        if db_order is None:
            return None

        product_ids = {order.product_id}
        if db_order.product_id is not None:
            product_ids.add(db_order.product_id)
        locked = {p.product_id: p for p in lock_products(db, list(product_ids))}

        product = locked.get(order.product_id)
        if product is None:
            logger.warning(f"Order {order_id} update rejected: product {order.product_id} does not exist")
            raise InvalidReference("Invalid ProductId.")

        total = checked_total(product.price, order.quantity)

        if db_order.product_id is not None:
            restore_stock(db, db_order.product_id, db_order.quantity)
        deduct_stock(db, product.product_id, order.quantity)

        db_order.product_id = product.product_id
        db_order.quantity = order.quantity
        db_order.total_price = total
        db_order.updated_date = models.utcnow()

    logger.info(f"Updated order {order_id}: {order.quantity} x product {product.product_id}")
    return to_order_result(db_order, product)
