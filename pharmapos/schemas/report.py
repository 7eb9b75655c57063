from datetime import datetime
from typing import Optional

from pharmapos.schemas.base import CamelModel, NamedRef
from pharmapos.schemas.product import ProductResponse


class SaleSummary(CamelModel):
    id: int
    created_at: Optional[datetime] = None
    attendant_name: Optional[str] = None
    total: float
    profit: Optional[float] = None
    payment_method: str
    item_count: int


class EmployeeTotals(CamelModel):
    total: float = 0.0
    count: int = 0


class SalesReport(CamelModel):
    """Store-wide sales report."""
    total_sales_value: float
    total_profit: float
    sales_by_employee: dict[str, EmployeeTotals]
    sale_count: int
    detailed_sales: list[SaleSummary]


class MySalesReport(CamelModel):
    """Sales report restricted to the calling attendant."""
    total_sales_value: float
    sale_count: int
    detailed_sales: list[SaleSummary]


class StockMovementResponse(CamelModel):
    id: int
    product_id: int
    quantity_change: int
    reason: str
    user_id: int
    created_at: Optional[datetime] = None
    product: NamedRef
    user: NamedRef


class StockAlertsReport(CamelModel):
    low_stock_products: list[ProductResponse]
    near_expiry_products: list[ProductResponse]


class DashboardCounter(CamelModel):
    name: str
    value: int


class ProductQuantity(CamelModel):
    name: str
    quantity_sold: int


class CategoryTotal(CamelModel):
    name: str
    total_sales: float


class ProductNetChange(CamelModel):
    name: str
    net_change: int
