from sqlalchemy import Column, Integer, String, Float, Date, DateTime, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from pharmapos.database import Base


class Product(Base):
    """
    Product model representing a catalog item held in stock.

    Attributes:
        id: Unique identifier for the product
        name: Product name
        category: Therapeutic or commercial category
        dosage: Optional dosage (e.g. "500mg")
        manufacturer: Optional manufacturer name
        purchase_price: Unit cost (must be positive)
        selling_price: Unit price charged at the counter (must be positive)
        stock_quantity: Units on hand (must be non-negative)
        min_stock_quantity: Threshold under which the product is "low stock"
        expiry_date: Expiry date of the batch on hand
        barcode: Optional barcode, unique when present
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    category = Column(String(50), nullable=False, index=True)
    dosage = Column(String(50), nullable=True)
    manufacturer = Column(String(100), nullable=True)
    purchase_price = Column(Float, nullable=False)
    selling_price = Column(Float, nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    min_stock_quantity = Column(Integer, nullable=False, default=0)
    expiry_date = Column(Date, nullable=False)
    barcode = Column(String(50), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    stock_movements = relationship(
        "StockMovement",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    sale_items = relationship("SaleItem", back_populates="product")

    # Database-level constraints to ensure data integrity
    __table_args__ = (
        CheckConstraint('purchase_price > 0', name='check_purchase_price_positive'),
        CheckConstraint('selling_price > 0', name='check_selling_price_positive'),
        CheckConstraint('stock_quantity >= 0', name='check_stock_non_negative'),
        CheckConstraint('min_stock_quantity >= 0', name='check_min_stock_non_negative'),
    )

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.min_stock_quantity

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', stock={self.stock_quantity})>"
