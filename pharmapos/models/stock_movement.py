from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from pharmapos.database import Base

MANUAL_ADJUSTMENT_REASON = "manual adjustment"


def sale_reason(sale_id: int) -> str:
    return f"Sale #{sale_id}"


class StockMovement(Base):
    """
    Append-only ledger entry for a signed stock change on a product.

    Rows are never updated. They only disappear together with their product.

    Attributes:
        id: Unique identifier for the movement
        product_id: Product whose stock changed
        quantity_change: Signed delta, negative for consumption
        reason: Free text, e.g. "Sale #12" or "manual adjustment"
        user_id: User who caused the change
        created_at: Timestamp of the change
    """
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quantity_change = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    product = relationship("Product", back_populates="stock_movements")
    user = relationship("User")

    def __repr__(self):
        return f"<StockMovement(id={self.id}, product_id={self.product_id}, change={self.quantity_change:+d})>"
