# backend/command_ops/errors.py
"""
Application error taxonomy.

Every error carries a stable code, the HTTP status it renders as, and a
user-safe message. Internal details stay in ``str(exc)`` and the logs.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class AppError(Exception):
    code = "SYSTEM_001"
    status_code = 500
    user_message = "Something went wrong. Please try again"
    retryable = False

    def __init__(self, message: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.user_message)
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": str(self),
            "user_message": self.user_message,
            "context": self.context,
        }


class AuthenticationError(AppError):
    code = "AUTH_001"
    status_code = 401
    user_message = "Please sign in to continue"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__("Authentication required", context)


class AuthorizationError(AppError):
    code = "AUTH_002"
    status_code = 403
    user_message = "Access denied"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__("Access denied", context)


class ValidationError(AppError):
    code = "VALIDATION_001"
    status_code = 422

    def __init__(self, user_message: str, details: Any = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(f"Validation failed: {user_message}", context)
        self.user_message = user_message
        self.details = details


class BusinessLogicError(AppError):
    code = "BUSINESS_001"
    status_code = 409

    def __init__(self, user_message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(f"Business rule violation: {user_message}", context)
        self.user_message = user_message


class NotFoundError(AppError):
    code = "RESOURCE_001"
    status_code = 404
    user_message = "Resource not found"

    def __init__(self, resource: str = "Resource", context: Optional[Dict[str, Any]] = None):
        super().__init__(f"{resource} not found", context)
        self.user_message = f"{resource} not found"


class RateLimitError(AppError):
    code = "RATE_001"
    status_code = 429
    user_message = "Too many requests. Please wait and try again"
    retryable = True

    def __init__(self, retry_after: Optional[int] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__("Rate limit exceeded", context)
        self.retry_after = retry_after


class DatabaseError(AppError):
    code = "SYSTEM_002"
    status_code = 500
    user_message = "Data operation failed. Please try again"
    retryable = True

    def __init__(self, original: Optional[BaseException] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(f"Database error: {original}" if original else "Database error", context)
