from typing import Optional, Dict, Any
import traceback
import sys


class CartError(Exception):
    def __init__(self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        internal_message: Optional[str] = None):
        self.message = message  # User-facing message
        self.internal_message = internal_message or message  # Internal/debug message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__.replace('Error', '').upper()
        self.details = details or {}

        # Capture stack trace for debugging
        self.traceback = traceback.format_exc() if sys.exc_info()[0] else None

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        return {
            "success": False,
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


class InvalidRowIdError(CartError):
    """Raised when the cart does not contain the requested rowId"""

    def __init__(self, row_id: str):
        super().__init__(
            f"The cart does not contain rowId {row_id}.",
            404,
            "INVALID_ROW_ID",
            {"row_id": row_id}
        )


class UnknownModelError(CartError):
    """Raised when a model type name cannot be resolved"""

    def __init__(self, model: str):
        super().__init__(
            f"The supplied model {model} does not exist.",
            422,
            "UNKNOWN_MODEL",
            {"model": model}
        )


class InvalidArgumentError(CartError, ValueError):
    """Raised when a cart item is built or patched with invalid values"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, 400, "INVALID_ARGUMENT", details)


class CorruptedCartError(CartError):
    """Raised when a stored cart snapshot cannot be decoded"""

    def __init__(self, identifier: str, instance: str, reason: str):
        super().__init__(
            "Stored cart could not be read.",
            500,
            "CORRUPTED_CART",
            {"identifier": identifier, "instance": instance},
            internal_message=f"Stored cart {identifier}/{instance} is corrupted: {reason}"
        )


class DatabaseError(CartError):
    """Raised when database operations fail"""

    def __init__(self, message: str = "Database operation failed", operation: Optional[str] = None):
        # Don't expose internal database details to users
        user_message = "An internal error occurred. Please try again later."
        details = {"operation": operation} if operation else {}
        super().__init__(
            user_message,
            500,
            "DATABASE_ERROR",
            details,
            internal_message=message  # Keep original message for logging
        )
