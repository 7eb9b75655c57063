from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Optional, List, Tuple
import math
import logging

from pharmapos.exceptions import (
    PharmaPOSError,
    ValidationError,
    ProductNotFoundError,
    BarcodeConflictError,
    ProductInUseError,
)
from pharmapos.models.product import Product
from pharmapos.models.sale import SaleItem
from pharmapos.models.stock_movement import StockMovement, MANUAL_ADJUSTMENT_REASON
from pharmapos.models.user import User
from pharmapos.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from pharmapos.utils.cache import cache_service

logger = logging.getLogger(__name__)

# Fields a sparse update may explicitly clear by sending null
NULLABLE_FIELDS = {"dosage", "manufacturer", "barcode"}


class ProductService:
    """
    Service class for catalog operations.

    This service handles:
    - Creating products
    - Reading products (detail reads go through the Redis cache)
    - Sparse updates, recording stock changes as manual adjustments
    - Deleting products that never took part in a sale
    """

    CACHE_PREFIX = "product"

    def __init__(self, db: Session):
        self.db = db

    def create(self, product_data: ProductCreate) -> Product:
        """
        Create a new product.

        Raises:
            BarcodeConflictError: If another product already uses the barcode
        """
        if product_data.barcode and self.get_by_barcode(product_data.barcode):
            raise BarcodeConflictError("A product with this barcode already exists.")

        product = Product(**product_data.model_dump())
        self.db.add(product)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise BarcodeConflictError("A product with this barcode already exists.")
        self.db.refresh(product)

        logger.info(f"Product #{product.id} '{product.name}' created with stock {product.stock_quantity}")
        return product

    def get_by_id(self, product_id: int) -> Optional[Product]:
        return self.db.query(Product).filter(Product.id == product_id).first()

    def get_by_id_cached(self, product_id: int) -> Optional[dict]:
        """
        Get product details from cache or database.
        Returns a dictionary in wire format (suitable for API response).
        """
        cached = cache_service.get(self.CACHE_PREFIX, str(product_id))
        if cached:
            return cached

        product = self.get_by_id(product_id)
        if not product:
            return None

        product_dict = ProductResponse.model_validate(product).model_dump(mode="json", by_alias=True)
        cache_service.set(self.CACHE_PREFIX, str(product_id), product_dict)
        return product_dict

    def get_by_barcode(self, barcode: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.barcode == barcode).first()

    def get_all(
        self,
        page: int = 1,
        page_size: int = 50,
        search: str = None
    ) -> Tuple[List[Product], int, int]:
        """
        Get paginated list of products ordered by name.

        Args:
            page: Page number (1-indexed)
            page_size: Number of items per page
            search: Optional search term for product name

        Returns:
            Tuple of (products list, total count, total pages)
        """
        query = self.db.query(Product)

        if search:
            query = query.filter(Product.name.ilike(f"%{search}%"))

        total = query.count()
        total_pages = math.ceil(total / page_size) if total > 0 else 1

        offset = (page - 1) * page_size
        products = query.order_by(Product.name.asc(), Product.id.asc()).offset(offset).limit(page_size).all()

        return products, total, total_pages

    def update(self, product_id: int, product_data: ProductUpdate, actor: User) -> Product:
        """
        Apply a sparse update to a product.

        If the stock quantity changes, the signed difference is written to the
        stock ledger as a manual adjustment in the same transaction, before
        the product row itself is updated.

        Raises:
            ProductNotFoundError: If the product doesn't exist
            ValidationError: If the merged values break a cross-field rule
            BarcodeConflictError: If the new barcode belongs to another product
        """
        try:
            product = (
                self.db.query(Product)
                .filter(Product.id == product_id)
                .with_for_update()
                .first()
            )
            if not product:
                raise ProductNotFoundError(f"Product with ID {product_id} not found")

            changes = {
                field: value
                for field, value in product_data.model_dump(exclude_unset=True).items()
                if value is not None or field in NULLABLE_FIELDS
            }
            if not changes:
                raise ValidationError("No fields provided for update.")

            merged = {
                field: changes.get(field, getattr(product, field))
                for field in ("purchase_price", "selling_price", "stock_quantity", "min_stock_quantity")
            }
            if merged["selling_price"] < merged["purchase_price"]:
                raise ValidationError("Selling price cannot be lower than purchase price.")
            if merged["min_stock_quantity"] > merged["stock_quantity"]:
                raise ValidationError("Minimum stock quantity cannot be greater than stock quantity.")

            new_barcode = changes.get("barcode")
            if new_barcode and new_barcode != product.barcode:
                clash = self.get_by_barcode(new_barcode)
                if clash and clash.id != product.id:
                    raise BarcodeConflictError("A product with this barcode already exists.")

            quantity_change = merged["stock_quantity"] - product.stock_quantity
            if quantity_change != 0:
                self.db.add(StockMovement(
                    product_id=product.id,
                    quantity_change=quantity_change,
                    reason=MANUAL_ADJUSTMENT_REASON,
                    user_id=actor.id,
                ))
                self.db.flush()

            for field, value in changes.items():
                setattr(product, field, value)

            self.db.commit()

        except PharmaPOSError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error updating product #{product_id}: {e}")
            raise BarcodeConflictError("A product with this barcode already exists.")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating product #{product_id}: {e}")
            raise

        self.db.refresh(product)
        self._invalidate_cache(product_id)

        if quantity_change != 0:
            logger.info(
                f"Product #{product_id} stock adjusted by {quantity_change:+d} "
                f"to {product.stock_quantity} by user #{actor.id}"
            )
        return product

    def delete(self, product_id: int) -> None:
        """
        Delete a product together with its stock movements.

        Raises:
            ProductNotFoundError: If the product doesn't exist
            ProductInUseError: If any sale item references the product
        """
        product = self.get_by_id(product_id)
        if not product:
            raise ProductNotFoundError(f"Product with ID {product_id} not found")

        sale_items = self.db.query(SaleItem).filter(SaleItem.product_id == product_id).count()
        if sale_items > 0:
            raise ProductInUseError("Cannot delete a product that is part of a sale.")

        try:
            self.db.query(StockMovement).filter(StockMovement.product_id == product_id).delete(
                synchronize_session=False
            )
            self.db.delete(product)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting product #{product_id}: {e}")
            raise

        self._invalidate_cache(product_id)
        logger.info(f"Product #{product_id} deleted")

    def _invalidate_cache(self, *product_ids: int) -> None:
        """Invalidate cache for one or more products."""
        cache_service.delete(self.CACHE_PREFIX, *(str(pid) for pid in product_ids))
