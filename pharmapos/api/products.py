from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from pharmapos.database import get_db
from pharmapos.schemas.base import MAX_ID
from pharmapos.exceptions import ProductNotFoundError
from pharmapos.models.user import User
from pharmapos.policy import Operation, require
from pharmapos.services.product_service import ProductService
from pharmapos.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse
)

router = APIRouter(prefix="/products", tags=["Products"])


@router.post(
    "/",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="Create a new catalog product. The barcode, when given, must be unique."
)
def create_product(
    product_data: ProductCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.PRODUCT_CREATE)),
):
    """
    Create a new product.

    - **name**, **category**: required, 2-100 and 2-50 characters
    - **purchasePrice**, **sellingPrice**: positive, selling >= purchase
    - **stockQuantity**, **minStockQuantity**: integers >= 0, minimum <= stock
    - **expiryDate**: must be in the future
    """
    service = ProductService(db)
    return service.create(product_data)


@router.get(
    "/",
    response_model=ProductListResponse,
    summary="List all products",
    description="Get a paginated list of products ordered by name, with optional search."
)
def list_products(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=200, alias="pageSize", description="Items per page"),
    search: Optional[str] = Query(None, description="Search by product name"),
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.PRODUCT_LIST)),
):
    """Get paginated list of products."""
    service = ProductService(db)
    products, total, total_pages = service.get_all(page, page_size, search)

    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in products],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get(
    "/barcode/{barcode}",
    response_model=ProductResponse,
    summary="Get product by barcode",
    description="Look up a product from a scanned barcode."
)
def get_product_by_barcode(
    barcode: str,
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.PRODUCT_READ)),
):
    service = ProductService(db)
    product = service.get_by_barcode(barcode)

    if not product:
        raise ProductNotFoundError(f"Product with barcode {barcode} not found")

    return product


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product by ID",
    description="Get detailed information about a specific product. Results are cached in Redis."
)
def get_product(
    product_id: int = Path(..., ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.PRODUCT_READ)),
):
    """
    Get a product by ID.

    The cache entry is dropped on every update, deletion and sale of the
    product, so the stock shown is never older than the last change.
    """
    service = ProductService(db)
    product = service.get_by_id_cached(product_id)

    if not product:
        raise ProductNotFoundError(f"Product with ID {product_id} not found")

    return product


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update a product",
    description="Update product details. Only provided fields are validated and updated."
)
def update_product(
    product_data: ProductUpdate,
    product_id: int = Path(..., ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.PRODUCT_UPDATE)),
):
    """
    Update a product.

    Partial updates are supported. A change of **stockQuantity** is recorded
    in the stock history as a manual adjustment.
    """
    service = ProductService(db)
    return service.update(product_id, product_data, user)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a product",
    description="Delete a product and its stock history. Products already sold cannot be deleted."
)
def delete_product(
    product_id: int = Path(..., ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.PRODUCT_DELETE)),
):
    """Delete a product."""
    service = ProductService(db)
    service.delete(product_id)
    return None
