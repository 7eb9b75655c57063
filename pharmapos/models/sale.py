from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from pharmapos.database import Base


class Sale(Base):
    """
    Sale model representing one checkout transaction.

    Attributes:
        id: Unique identifier for the sale
        total: Server-computed total, never below zero
        discount: Discount subtracted from the subtotal
        payment_method: Payment method label (cash, card, ...)
        attendant_id: User who rang up the sale
        idempotency_key: Optional client token that makes resubmission safe
        created_at: Timestamp when the sale was recorded
    """
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    total = Column(Float, nullable=False)
    discount = Column(Float, nullable=False, default=0)
    payment_method = Column(String(50), nullable=False)
    attendant_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    idempotency_key = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    attendant = relationship("User")
    items = relationship("SaleItem", back_populates="sale", order_by="SaleItem.id")

    __table_args__ = (
        CheckConstraint('total >= 0', name='check_total_non_negative'),
        CheckConstraint('discount >= 0', name='check_discount_non_negative'),
        UniqueConstraint('attendant_id', 'idempotency_key', name='uq_sale_attendant_idempotency_key'),
    )

    def __repr__(self):
        return f"<Sale(id={self.id}, total={self.total}, attendant_id={self.attendant_id})>"


class SaleItem(Base):
    """
    One line of a sale. ``price_at_sale`` is a snapshot of the product's
    selling price when the sale was recorded and is never recomputed.
    """
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    price_at_sale = Column(Float, nullable=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product", back_populates="sale_items")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_sale_item_quantity_positive'),
    )

    @property
    def line_total(self) -> float:
        return self.quantity * self.price_at_sale

    def __repr__(self):
        return f"<SaleItem(id={self.id}, sale_id={self.sale_id}, product_id={self.product_id}, qty={self.quantity})>"
