"""
Domain exceptions.

Every business-rule failure is raised as a ``PharmaPOSError`` subclass. The
subclass carries the HTTP status the API maps it to, so services never touch
HTTP concerns and route handlers never need per-error ``try`` blocks.
"""


class PharmaPOSError(Exception):
    """Base class for all expected, user-facing failures."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PharmaPOSError):
    """Input failed a field or cross-field rule."""
    status_code = 400


class AuthenticationError(PharmaPOSError):
    status_code = 401


class PermissionDeniedError(PharmaPOSError):
    status_code = 403


class NotFoundError(PharmaPOSError):
    status_code = 404


class ProductNotFoundError(NotFoundError):
    pass


class UserNotFoundError(NotFoundError):
    pass


class SaleNotFoundError(NotFoundError):
    pass


class ConflictError(PharmaPOSError):
    """A uniqueness rule would be broken."""
    status_code = 409


class BarcodeConflictError(ConflictError):
    pass


class EmailConflictError(ConflictError):
    pass


class InsufficientStockError(PharmaPOSError):
    """Exception raised when there's not enough stock to fulfill a sale line."""
    status_code = 400


class ProductInUseError(PharmaPOSError):
    """The product is referenced by sale items and cannot be removed."""
    status_code = 400
