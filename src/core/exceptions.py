from typing import Optional


class CafeteriaError(Exception):
    """Base class for errors the API layer maps to a response"""
    pass


class NotFound(CafeteriaError):
    """Raised when a referenced product or user does not exist"""
    pass


class InsufficientStock(CafeteriaError):
    """Raised when an order asks for more than is available"""

    def __init__(self, message: str, current_quantity: int):
        super().__init__(message)
        self.current_quantity = current_quantity


class DuplicateKey(CafeteriaError):
    """Raised on a primary key collision (username, branch/product)"""
    pass


class ConcurrencyConflict(CafeteriaError):
    """Raised when a compare-and-set on stock keeps losing to other writers"""
    pass


class StoreError(CafeteriaError):
    """Raised when the underlying store operation fails"""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class Unauthorized(CafeteriaError):
    pass


class Forbidden(CafeteriaError):
    pass
