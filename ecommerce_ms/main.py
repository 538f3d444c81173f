"""
E-commerce Service API

This module implements a FastAPI-based service for managing products and
orders with a relational database behind it.

Placing an order checks the product's stock, deducts it and records the
order in a single transaction. Orders keep the price they were sold at and
survive the deletion of their product.

Endpoints:
    GET /product: List products with pagination
    GET /product/{product_id}: Get a single product by ID
    POST /product: Create a new product
    PUT /product/{product_id}: Update an existing product
    DELETE /product/{product_id}: Delete a product
    GET /order: List orders with their product names
    GET /order/{order_id}: Get a single order by ID
    POST /order: Place an order
    PUT /order/{order_id}: Change an order's product and quantity
    GET /healthz: Health check endpoint for orchestration systems

Attributes:
    app (FastAPI): The FastAPI application instance configured with the title "ecommerce-service"
"""
from typing import Annotated, List
import logging
from fastapi import APIRouter, Depends, FastAPI, Path, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud, models, schemas, validators
from .config import API_PREFIX, CORS_ORIGINS, LOG_LEVEL
from .database import engine, get_db
from .exceptions import InvalidInput, NotFound, ServiceError

# Path and paging parameters beyond 32-bit ids are rejected as malformed requests
ProductId = Annotated[int, Path(le=validators.MAX_ID)]
OrderId = Annotated[int, Path(le=validators.MAX_ID)]
Skip = Annotated[int, Query(ge=0, le=validators.MAX_ID)]
Limit = Annotated[int, Query(ge=1, le=1000)]

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create database tables
models.Base.metadata.create_all(bind=engine)

app = FastAPI(title="ecommerce-service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

router = APIRouter(prefix=API_PREFIX)


@app.exception_handler(ServiceError)
def handle_service_error(request: Request, exc: ServiceError):
    """
    Render service-layer errors as ``{"success": false, "message": ...}``.

    Returns:
        JSONResponse with the exception's status code
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=schemas.MessageResponse(success=False, message=exc.message).model_dump(),
    )


@app.exception_handler(SQLAlchemyError)
def handle_database_error(request: Request, exc: SQLAlchemyError):
    """Report database errors outside a unit of work (reads) as 500 errors."""
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=schemas.MessageResponse(success=False, message="Database error.").model_dump(),
    )


@app.exception_handler(RequestValidationError)
def handle_request_validation_error(request: Request, exc: RequestValidationError):
    """
    Report malformed request bodies and path parameters as 400 errors.

    Returns:
        JSONResponse describing the first offending field
    """
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "path", "query"))
        message = f"Invalid value for '{field}': {first.get('msg')}." if field else f"{first.get('msg')}."
    else:
        message = "Invalid request."
    logger.warning(f"Rejected malformed request to {request.url.path}: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=schemas.MessageResponse(success=False, message=message).model_dump(),
    )


@app.get("/healthz", response_model=dict)
def health():
    """Liveness check; answers without touching the database."""
    return {"status": "healthy"}


@router.get("/product", response_model=List[schemas.Product])
def list_products(
    skip: Skip = 0,
    limit: Limit = 100,
    db: Session = Depends(get_db)
):
    """
    List all products with pagination.

    Args:
        skip: Number of records to skip (default: 0)
        limit: Maximum number of records to return (default: 100)
        db: Database session (injected)

    Returns:
        List of product objects
    """
    return crud.get_products(db, skip=skip, limit=limit)


@router.get("/product/{product_id}", response_model=schemas.Product)
def get_product(product_id: ProductId, db: Session = Depends(get_db)):
    """
    Get a single product by ID.

    Raises:
        NotFound: 404 if product not found
    """
    db_product = crud.get_product(db, product_id=product_id)
    if db_product is None:
        raise NotFound(f"Product with ID {product_id} not found.")
    return db_product


@router.post(
    "/product",
    response_model=schemas.ApiResponse[schemas.Product],
    status_code=status.HTTP_201_CREATED,
)
def create_product(product: schemas.ProductCreate, db: Session = Depends(get_db)):
    """
    Create a new product.

    Args:
        product: Product data (name, price, stock)
        db: Database session (injected)

    Returns:
        Envelope with the created product

    Raises:
        InvalidInput: 400 if name is empty, price is not positive or stock is negative
        PersistenceError: 500 if the product could not be saved
    """
    is_valid, error_message = validators.validate_product_input(product)
    if not is_valid:
        raise InvalidInput(error_message)

    db_product = crud.create_product(db=db, product=product)
    return schemas.ApiResponse[schemas.Product](
        message="Product created successfully.",
        data=schemas.Product.model_validate(db_product),
    )


@router.put("/product/{product_id}", response_model=schemas.ApiResponse[schemas.Product])
def update_product(
    product_id: ProductId,
    product: schemas.ProductUpdate,
    db: Session = Depends(get_db)
):
    """
    Update an existing product.

    Args:
        product_id: ID of the product to update
        product: Updated product data (name, price, stock)
        db: Database session (injected)

    Returns:
        Envelope with the updated product

    Raises:
        InvalidInput: 400 if the payload is invalid
        NotFound: 404 if product not found
    """
    is_valid, error_message = validators.validate_product_input(product)
    if not is_valid:
        raise InvalidInput(error_message)

    db_product = crud.update_product(db, product_id=product_id, product=product)
    if db_product is None:
        raise NotFound("Product not found.")
    return schemas.ApiResponse[schemas.Product](
        message="Product updated successfully.",
        data=schemas.Product.model_validate(db_product),
    )


@router.delete("/product/{product_id}", response_model=schemas.MessageResponse)
def delete_product(product_id: ProductId, db: Session = Depends(get_db)):
    """
    Delete a product. Its orders are kept with an empty product reference.

    Raises:
        NotFound: 404 if product not found
    """
    if not crud.delete_product(db, product_id=product_id):
        raise NotFound("Product not found.")
    return schemas.MessageResponse(message="Product deleted successfully.")


@router.get("/order", response_model=List[schemas.OrderDetail])
def list_orders(
    skip: Skip = 0,
    limit: Limit = 100,
    db: Session = Depends(get_db)
):
    """
    List orders with their product names, with pagination.

    Orders whose product no longer exists are included with a null productName.

    Args:
        skip: Number of records to skip (default: 0)
        limit: Maximum number of records to return (default: 100)
        db: Database session (injected)

    Returns:
        List of order objects
    """
    return crud.get_order_details(db, skip=skip, limit=limit)


@router.get("/order/{order_id}", response_model=schemas.OrderDetail)
def get_order(order_id: OrderId, db: Session = Depends(get_db)):
    """
    Get a single order by ID.

    Raises:
        NotFound: 404 if order not found
    """
    order = crud.get_order_detail(db, order_id=order_id)
    if order is None:
        raise NotFound(f"Order with ID {order_id} not found.")
    return order


@router.post("/order", response_model=schemas.ApiResponse[schemas.OrderResult])
def create_order(order: schemas.OrderCreate, db: Session = Depends(get_db)):
    """
    Place an order, deducting the product's stock.

    This endpoint:
    - Validates productId and quantity are positive
    - Checks the product exists
    - Checks the product has enough stock
    - Deducts the stock and records the order in one transaction

    Args:
        order: Product ID and quantity
        db: Database session (injected)

    Returns:
        Envelope with the created order and the product's remaining stock

    Raises:
        InvalidInput: 400 if productId or quantity is missing or not positive
        InvalidReference: 400 if the product does not exist
        InsufficientStock: 400 if the product has fewer units than requested
        PersistenceError: 500 if the order could not be saved
    """
    is_valid, error_message = validators.validate_order_input(order)
    if not is_valid:
        raise InvalidInput(error_message)

    result = crud.create_order(db=db, order=order)
    return schemas.ApiResponse[schemas.OrderResult](
        message="Order created successfully.",
        data=result,
    )


@router.put("/order/{order_id}", response_model=schemas.ApiResponse[schemas.OrderResult])
def update_order(
    order_id: OrderId,
    order: schemas.OrderUpdate,
    db: Session = Depends(get_db)
):
    """
    Change an order's product and quantity.

    The old quantity is returned to stock and the new quantity deducted, and
    the total is recomputed from the product's current price.

    Args:
        order_id: ID of the order to update
        order: New product ID and quantity
        db: Database session (injected)

    Returns:
        Envelope with the updated order

    Raises:
        InvalidInput: 400 if productId or quantity is missing or not positive
        NotFound: 404 if order not found
        InvalidReference: 400 if the product does not exist
        InsufficientStock: 400 if the product cannot cover the new quantity
    """
    is_valid, error_message = validators.validate_order_input(order)
    if not is_valid:
        raise InvalidInput(error_message)

    result = crud.update_order(db, order_id=order_id, order=order)
    if result is None:
        raise NotFound(f"Order with ID {order_id} not found.")
    return schemas.ApiResponse[schemas.OrderResult](
        message="Order updated successfully.",
        data=result,
    )


app.include_router(router)
