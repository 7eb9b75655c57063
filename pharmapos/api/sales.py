import logging
from fastapi import APIRouter, Depends, Header, Path, Query, Response, status
from sqlalchemy.orm import Session
from typing import Optional

from pharmapos.database import get_db
from pharmapos.schemas.base import MAX_ID
from pharmapos.models.user import User
from pharmapos.policy import Operation, require
from pharmapos.services.sale_service import SaleService
from pharmapos.schemas.sale import SaleCreate, SaleResponse, SaleListResponse
from pharmapos.tasks.stock_tasks import check_stock_alerts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.post(
    "/",
    response_model=SaleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a sale",
    description="""
    Check out a cart.

    **Price authority:** unit prices always come from the catalog at the
    moment of the sale; the client only sends product ids and quantities.

    **Atomicity:** stock checks, the sale, its items, the stock decrements
    and the stock movements are one transaction. If any product is missing
    or short on stock, nothing is recorded.

    **Resubmission:** without an `Idempotency-Key` header every call records
    a new sale. With the header, repeating a key returns the original sale
    (200) instead of recording it twice.
    """
)
def create_sale(
    sale_data: SaleCreate,
    response: Response,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key", max_length=100),
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.SALE_CREATE)),
):
    """
    Record a sale.

    - **cart**: list of `{id, quantity}`, non-empty, each product once
    - **discount**: amount off the subtotal; invalid or negative means 0
    - **paymentMethod**: required
    """
    service = SaleService(db)
    sale, created = service.create_sale(sale_data, user, idempotency_key)

    if not created:
        response.status_code = status.HTTP_200_OK
        return sale

    try:
        check_stock_alerts.delay(sale.id)
    except Exception:
        # The sale is committed; a missing alert must not turn it into an error
        logger.exception(f"Could not queue stock alert check for Sale #{sale.id}")

    return sale


@router.get(
    "/",
    response_model=SaleListResponse,
    summary="List all sales",
    description="Get a paginated list of sales, newest first."
)
def list_sales(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize", description="Items per page"),
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.SALE_LIST)),
):
    """Get paginated list of sales."""
    service = SaleService(db)
    sales, total, total_pages = service.get_sales(page, page_size)

    return SaleListResponse(
        items=[SaleResponse.model_validate(s) for s in sales],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get(
    "/{sale_id}",
    response_model=SaleResponse,
    summary="Get sale by ID",
    description="Get a sale with its items, e.g. to reprint a receipt. Attendants only see their own sales."
)
def get_sale(
    sale_id: int = Path(..., ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.SALE_READ)),
):
    service = SaleService(db)
    return service.get_sale_for(sale_id, user)
