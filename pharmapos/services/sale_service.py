from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import IntegrityError
from typing import Optional, List, Tuple
import math
import logging

from pharmapos.exceptions import (
    PharmaPOSError,
    InsufficientStockError,
    ProductNotFoundError,
    SaleNotFoundError,
    PermissionDeniedError,
)
from pharmapos.models.product import Product
from pharmapos.models.sale import Sale, SaleItem
from pharmapos.models.stock_movement import StockMovement, sale_reason
from pharmapos.models.user import User, UserRole
from pharmapos.schemas.sale import SaleCreate
from pharmapos.utils.cache import cache_service

logger = logging.getLogger(__name__)


class SaleService:
    """
    Service class for checkout with all-or-nothing stock consumption.

    CONSISTENCY STRATEGY:
    =====================
    A sale is one database transaction:

    1. SELECT every cart product FOR UPDATE (one read, rows locked)
    2. Check every product exists and has enough stock
    3. Price every line from the catalog, never from the client
    4. Insert the Sale, then per line a SaleItem, a stock decrement and a
       StockMovement referencing the sale
    5. Commit (releases the locks)

    Any failure rolls the whole transaction back, so a rejected cart leaves
    no sale, no items, no movements and untouched stock. Concurrent sales of
    the same product are serialized by the row locks; on engines without
    row locking the stock check constraint still refuses a negative stock.
    """

    def __init__(self, db: Session):
        self.db = db

    def create_sale(
        self,
        sale_data: SaleCreate,
        attendant: User,
        idempotency_key: Optional[str] = None,
    ) -> Tuple[Sale, bool]:
        """
        Record a sale for the given cart.

        Args:
            sale_data: Cart, discount and payment method
            attendant: The user ringing up the sale
            idempotency_key: Optional client token; a replay of a key already
                used by this attendant returns the recorded sale untouched

        Returns:
            Tuple of (sale with items loaded, created flag)

        Raises:
            ProductNotFoundError: If a cart product doesn't exist
            InsufficientStockError: If a cart line exceeds the stock on hand
        """
        if idempotency_key:
            existing = self._find_by_idempotency_key(attendant.id, idempotency_key)
            if existing:
                logger.info(f"Sale #{existing.id} replayed for idempotency key {idempotency_key!r}")
                return existing, False

        product_ids = [item.id for item in sale_data.cart]

        try:
            products = (
                self.db.query(Product)
                .filter(Product.id.in_(product_ids))
                .with_for_update()
                .all()
            )
            product_map = {product.id: product for product in products}

            subtotal = 0.0
            for item in sale_data.cart:
                product = product_map.get(item.id)
                if product is None:
                    raise ProductNotFoundError(f"Product with ID {item.id} not found")
                if product.stock_quantity < item.quantity:
                    raise InsufficientStockError(f"Insufficient stock for product: {product.name}")
                subtotal += product.selling_price * item.quantity

            total = max(0.0, subtotal - sale_data.discount)

            sale = Sale(
                total=total,
                discount=sale_data.discount,
                payment_method=sale_data.payment_method,
                attendant_id=attendant.id,
                idempotency_key=idempotency_key,
            )
            self.db.add(sale)
            self.db.flush()  # assigns sale.id for the movement reasons

            for item in sale_data.cart:
                product = product_map[item.id]
                self.db.add(SaleItem(
                    sale_id=sale.id,
                    product_id=product.id,
                    quantity=item.quantity,
                    price_at_sale=product.selling_price,
                ))
                product.stock_quantity -= item.quantity
                self.db.add(StockMovement(
                    product_id=product.id,
                    quantity_change=-item.quantity,
                    reason=sale_reason(sale.id),
                    user_id=attendant.id,
                ))

            self.db.commit()

        except PharmaPOSError as e:
            self.db.rollback()
            logger.warning(f"Sale rejected for user #{attendant.id}: {e.message}")
            raise
        except IntegrityError as e:
            self.db.rollback()
            if idempotency_key:
                existing = self._find_by_idempotency_key(attendant.id, idempotency_key)
                if existing:
                    return existing, False
            logger.error(f"Integrity error creating sale: {e}")
            raise InsufficientStockError("Stock constraint violated - concurrent modification detected")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating sale: {e}")
            raise

        # Stock changed for every product in the cart
        cache_service.delete("product", *(str(pid) for pid in product_ids))

        logger.info(
            f"Sale #{sale.id} recorded by user #{attendant.id}: "
            f"{len(sale_data.cart)} line(s), total {total:.2f}"
        )
        return self.get_sale(sale.id), True

    def get_sale(self, sale_id: int) -> Optional[Sale]:
        """Get a sale with its attendant and items (with product names) loaded."""
        return (
            self._with_receipt_data(self.db.query(Sale))
            .filter(Sale.id == sale_id)
            .first()
        )

    def get_sale_for(self, sale_id: int, user: User) -> Sale:
        """
        Get a sale as seen by ``user``: attendants may only read their own.

        Raises:
            SaleNotFoundError: If the sale doesn't exist
            PermissionDeniedError: If an attendant asks for someone else's sale
        """
        sale = self.get_sale(sale_id)
        if not sale:
            raise SaleNotFoundError(f"Sale with ID {sale_id} not found")
        if user.role != UserRole.ADMIN and sale.attendant_id != user.id:
            raise PermissionDeniedError("Access denied")
        return sale

    def get_sales(self, page: int = 1, page_size: int = 10) -> Tuple[List[Sale], int, int]:
        """
        Get paginated list of sales, newest first.

        Returns:
            Tuple of (sales list, total count, total pages)
        """
        query = self.db.query(Sale)

        total = query.count()
        total_pages = math.ceil(total / page_size) if total > 0 else 1

        offset = (page - 1) * page_size
        sales = (
            self._with_receipt_data(query)
            .order_by(Sale.id.desc())
            .offset(offset)
            .limit(page_size)
            .all()
        )
        return sales, total, total_pages

    def _find_by_idempotency_key(self, attendant_id: int, key: str) -> Optional[Sale]:
        return (
            self._with_receipt_data(self.db.query(Sale))
            .filter(Sale.attendant_id == attendant_id, Sale.idempotency_key == key)
            .first()
        )

    @staticmethod
    def _with_receipt_data(query):
        return query.options(
            selectinload(Sale.attendant),
            selectinload(Sale.items).selectinload(SaleItem.product),
        )
