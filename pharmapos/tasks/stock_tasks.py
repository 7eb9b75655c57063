import logging

from pharmapos.tasks.celery_app import celery_app
from pharmapos.database import SessionLocal
from pharmapos.models.log import LogAction
from pharmapos.models.product import Product
from pharmapos.models.sale import SaleItem
from pharmapos.services.log_service import LogService

logger = logging.getLogger(__name__)


def find_low_stock_products(db, sale_id: int) -> list[Product]:
    """Products sold in the given sale that are now at or under their minimum."""
    return (
        db.query(Product)
        .join(SaleItem, SaleItem.product_id == Product.id)
        .filter(
            SaleItem.sale_id == sale_id,
            Product.stock_quantity <= Product.min_stock_quantity,
        )
        .order_by(Product.name.asc())
        .all()
    )


def record_low_stock_alerts(db, sale_id: int) -> list[int]:
    """
    Write one LOW_STOCK_ALERT audit entry per product of the sale that fell to
    its minimum stock. Returns the ids of the flagged products.
    """
    products = find_low_stock_products(db, sale_id)
    audit = LogService(db)
    for product in products:
        logger.warning(
            f"Low stock after Sale #{sale_id}: product #{product.id} '{product.name}' "
            f"has {product.stock_quantity} (minimum {product.min_stock_quantity})"
        )
        audit.record(
            None,
            LogAction.LOW_STOCK_ALERT,
            target_id=product.id,
            details={
                "saleId": sale_id,
                "name": product.name,
                "stockQuantity": product.stock_quantity,
                "minStockQuantity": product.min_stock_quantity,
            },
        )
    db.commit()
    return [product.id for product in products]


@celery_app.task(bind=True, name="check_stock_alerts")
def check_stock_alerts(self, sale_id: int) -> dict:
    """
    Background task run after every sale.

    Flags the products of the sale whose stock dropped to or below their
    minimum so the stock alerts survive in the audit log.

    Args:
        sale_id: ID of the sale that just committed

    Returns:
        Dictionary with the flagged product ids
    """
    db = SessionLocal()
    try:
        flagged = record_low_stock_alerts(db, sale_id)
        return {"status": "success", "sale_id": sale_id, "low_stock_product_ids": flagged}
    except Exception as e:
        db.rollback()
        logger.error(f"Error checking stock alerts for Sale #{sale_id}: {e}")
        raise self.retry(exc=e, countdown=30, max_retries=3)
    finally:
        db.close()
