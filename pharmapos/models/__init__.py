from pharmapos.models.user import User, UserRole, UserStatus
from pharmapos.models.product import Product
from pharmapos.models.stock_movement import StockMovement
from pharmapos.models.sale import Sale, SaleItem
from pharmapos.models.log import Log, LogAction

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "Product",
    "StockMovement",
    "Sale",
    "SaleItem",
    "Log",
    "LogAction",
]
