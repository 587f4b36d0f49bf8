"""Custom exceptions for SwipeRec.

Defines the error taxonomy surfaced by the engine and the service layer.
Status codes are hints for whatever outer layer maps errors to responses.
"""

from typing import Any, Dict, Optional


class SwipeRecException(Exception):
    """Base exception for SwipeRec errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: Suggested status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class ValidationError(SwipeRecException):
    """Raised when an input is rejected before any state is touched."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, status_code=400, details=details)


class DimensionMismatchError(ValidationError):
    """Raised when a preference vector and an embedding differ in length."""

    def __init__(self, expected: int, actual: int):
        message = (
            f"Embedding dimension {actual} does not match "
            f"preference vector dimension {expected}"
        )
        super().__init__(message, details={"expected": expected, "actual": actual})


class NotFoundError(SwipeRecException):
    """Raised when a user, product or interaction does not exist."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, status_code=404, details=details)


class UserNotFoundError(NotFoundError):
    """Raised when a user is not found in the store."""

    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} not found", details={"user_id": user_id})


class ProductNotFoundError(NotFoundError):
    """Raised when a product is not found in the store."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product {product_id} not found", details={"product_id": product_id}
        )


class InteractionNotFoundError(NotFoundError):
    """Raised when recategorizing a product the user never interacted with."""

    def __init__(self, user_id: str, product_id: str):
        super().__init__(
            f"No interaction between user {user_id} and product {product_id}",
            details={"user_id": user_id, "product_id": product_id},
        )


class DependencyError(SwipeRecException):
    """Raised when a store read or write fails."""

    def __init__(self, operation: str, error: Exception):
        message = f"Store operation '{operation}' failed: {str(error)}"
        super().__init__(
            message=message,
            status_code=503,
            details={
                "operation": operation,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
