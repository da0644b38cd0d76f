"""
Application error hierarchy.

Each error carries the HTTP status it maps to; the handlers registered in
app.main render them into the standard response envelope.
"""
from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """Base exception for back-office errors."""

    status_code = 500
    default_message = "An error occurred"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.code = code
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert the exception to the error envelope."""
        error_dict: Dict[str, Any] = {
            "success": False,
            "error": self.message,
        }
        if self.code:
            error_dict["code"] = self.code
        if self.details:
            error_dict["details"] = self.details
        return error_dict


class StoreNotFoundError(StorefrontError):
    """The authenticated caller has no resolvable store."""

    status_code = 404
    default_message = "Store not found"


class NotFoundError(StorefrontError):
    status_code = 404
    default_message = "Resource not found"


class ValidationError(StorefrontError):
    status_code = 400
    default_message = "Validation error"


class ConflictError(StorefrontError):
    status_code = 409
    default_message = "Resource already exists"


class InvalidTransitionError(ValidationError):
    """Raised for purchase order status changes outside the allowed workflow."""

    default_message = "Invalid status transition"
