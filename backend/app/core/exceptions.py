"""
Custom Exceptions for ShareCase
===============================

Every error raised by the services derives from ShareCaseError so the API
layer can turn it into a structured payload with the right status code.

Usage:
    from app.core.exceptions import IdentityNotFoundError

    if not user:
        raise IdentityNotFoundError(user_id)

Asset errors are the exception: the portfolio pipeline catches them per
image and renders an inline notice instead.
"""

from typing import Optional, Any, Dict


class ShareCaseError(Exception):
    """Base exception for all ShareCase errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authorization Errors
# ============================================

class AuthorizationError(ShareCaseError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404-type)
# ============================================

class NotFoundError(ShareCaseError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class ProjectNotFoundError(NotFoundError):
    def __init__(self, project_id: str):
        super().__init__("Project", project_id)


class NotificationNotFoundError(NotFoundError):
    def __init__(self, notification_id: str):
        super().__init__("Notification", notification_id)


class IdentityNotFoundError(NotFoundError):
    """The identity a portfolio was requested for does not exist"""

    def __init__(self, user_id: str):
        super().__init__("Identity", user_id)


# ============================================
# Ledger Errors (400-type)
# ============================================

class ValidationError(ShareCaseError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class SelfFollowError(ValidationError):
    """A user tried to follow or unfollow themselves"""

    def __init__(self, user_id: str):
        super().__init__("You cannot follow yourself.")
        self.code = "SELF_FOLLOW"
        self.details = {"user_id": user_id}


class InvalidAmountError(ValidationError):
    """Point awards must be positive integers"""

    def __init__(self, amount: Any):
        super().__init__(f"Point amount must be a positive integer, got {amount!r}", field="amount")
        self.code = "INVALID_AMOUNT"
        self.details["amount"] = repr(amount)


# ============================================
# Document Generation Errors
# ============================================

class DocumentInitError(ShareCaseError):
    """The base PDF document could not be set up"""

    def __init__(self, message: str = "Failed to initialize portfolio document"):
        super().__init__(message, code="DOCUMENT_INIT_FAILED")


# ============================================
# Remote Asset Errors (absorbed by the portfolio pipeline)
# ============================================

class AssetError(ShareCaseError):
    """Base class for remote image retrieval failures"""

    status_code = 502

    def __init__(self, message: str, url: str, code: str):
        super().__init__(message, code=code, details={"url": url})
        self.url = url


class AssetUnavailableError(AssetError):
    """The asset host answered with a non-2xx status"""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"HTTP Error: {status_code} for {url}", url, code="ASSET_UNAVAILABLE")
        self.http_status = status_code
        self.details["status_code"] = status_code


class AssetFetchError(AssetError):
    """The asset could not be reached (DNS, connection, timeout, bad URL)"""

    def __init__(self, url: str, cause: Exception):
        super().__init__(f"Failed to fetch {url}: {cause}", url, code="ASSET_FETCH_FAILED")
        self.cause = cause
        self.details["cause"] = type(cause).__name__


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: ShareCaseError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
