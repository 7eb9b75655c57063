"""
Authorization policy.

Every protected endpoint names an ``Operation``; ``POLICY`` maps each
operation to the roles allowed to perform it, and ``require`` is the single
gate that consults the table.
"""
import enum

from fastapi import Depends

from pharmapos.auth import get_current_user
from pharmapos.exceptions import PermissionDeniedError
from pharmapos.models.user import User, UserRole


class Operation(str, enum.Enum):
    PRODUCT_LIST = "product:list"
    PRODUCT_READ = "product:read"
    PRODUCT_CREATE = "product:create"
    PRODUCT_UPDATE = "product:update"
    PRODUCT_DELETE = "product:delete"

    SALE_CREATE = "sale:create"
    SALE_LIST = "sale:list"
    SALE_READ = "sale:read"

    USER_LIST = "user:list"
    USER_CREATE = "user:create"
    USER_UPDATE = "user:update"
    USER_DEACTIVATE = "user:deactivate"
    USER_REACTIVATE = "user:reactivate"

    LOG_LIST = "log:list"

    REPORT_SALES = "report:sales"
    REPORT_MY_SALES = "report:my-sales"
    REPORT_STOCK_MOVEMENTS = "report:stock-movements"
    REPORT_STOCK_ALERTS = "report:stock-alerts"
    REPORT_DASHBOARD = "report:dashboard"
    REPORT_MOST_SOLD = "report:most-sold"
    REPORT_BY_CATEGORY = "report:by-category"
    REPORT_RECENT_MOVEMENTS = "report:recent-movements"


ALL_ROLES = frozenset(UserRole)
ADMIN_ONLY = frozenset({UserRole.ADMIN})
INVENTORY = frozenset({UserRole.ADMIN, UserRole.STOCKIST})
COUNTER = frozenset({UserRole.ADMIN, UserRole.ATTENDANT})

POLICY: dict[Operation, frozenset[UserRole]] = {
    Operation.PRODUCT_LIST: ALL_ROLES,
    Operation.PRODUCT_READ: ALL_ROLES,
    Operation.PRODUCT_CREATE: INVENTORY,
    Operation.PRODUCT_UPDATE: INVENTORY,
    Operation.PRODUCT_DELETE: INVENTORY,

    Operation.SALE_CREATE: COUNTER,
    Operation.SALE_LIST: ADMIN_ONLY,
    # attendants are further restricted to their own sales
    Operation.SALE_READ: COUNTER,

    Operation.USER_LIST: ADMIN_ONLY,
    Operation.USER_CREATE: ADMIN_ONLY,
    Operation.USER_UPDATE: ADMIN_ONLY,
    Operation.USER_DEACTIVATE: ADMIN_ONLY,
    Operation.USER_REACTIVATE: ADMIN_ONLY,

    Operation.LOG_LIST: ADMIN_ONLY,

    Operation.REPORT_SALES: ADMIN_ONLY,
    Operation.REPORT_MY_SALES: COUNTER,
    Operation.REPORT_STOCK_MOVEMENTS: INVENTORY,
    Operation.REPORT_STOCK_ALERTS: ADMIN_ONLY,
    Operation.REPORT_DASHBOARD: ALL_ROLES,
    Operation.REPORT_MOST_SOLD: ALL_ROLES,
    Operation.REPORT_BY_CATEGORY: ALL_ROLES,
    Operation.REPORT_RECENT_MOVEMENTS: ALL_ROLES,
}


def is_allowed(role: UserRole, operation: Operation) -> bool:
    return role in POLICY.get(operation, frozenset())


def require(operation: Operation):
    """
    Dependency factory: resolves the current user and checks the policy.

    Usage:
        user: User = Depends(require(Operation.SALE_CREATE))
    """
    def _gate(user: User = Depends(get_current_user)) -> User:
        if not is_allowed(user.role, operation):
            raise PermissionDeniedError("Access denied")
        return user
    return _gate
