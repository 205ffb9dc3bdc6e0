"""
Custom Exceptions for devil-router
==================================

Structured error handling lets callers react to the error type instead of
parsing strings.

Error Codes:
- 1xxx: Client errors (admin input, validation)
- 3xxx: Resource errors (credential missing)
- 5xxx: System errors (decryption, configuration, database)
"""

from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Structured error codes for user-friendly messages"""

    # 1xxx: Client Errors
    VALIDATION_ERROR = 1001
    INVALID_CATEGORY = 1002

    # 3xxx: Resource Errors
    CREDENTIAL_MISSING = 3001

    # 5xxx: System Errors
    INTERNAL_ERROR = 5001
    DATABASE_ERROR = 5002
    CONFIGURATION_ERROR = 5003
    DECRYPTION_ERROR = 5004


class DevilRouterError(Exception):
    """Base exception for all devil-router errors"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging"""
        return {
            'error_type': self.__class__.__name__,
            'error_code': int(self.error_code),
            'message': self.message,
            'details': self.details
        }

    def user_message(self) -> str:
        """Get user-friendly error message based on error code"""
        code_messages = {
            ErrorCode.VALIDATION_ERROR: "Invalid input provided",
            ErrorCode.INVALID_CATEGORY: "Unknown model category",
            ErrorCode.CREDENTIAL_MISSING: "API keys are not configured. Please contact an administrator",
            ErrorCode.INTERNAL_ERROR: "Internal server error",
            ErrorCode.DATABASE_ERROR: "Database error",
            ErrorCode.CONFIGURATION_ERROR: "Configuration error",
            ErrorCode.DECRYPTION_ERROR: "Stored API key could not be decrypted",
        }
        return f"Error {self.error_code}: {code_messages.get(self.error_code, self.message)}"


class CredentialMissingError(DevilRouterError):
    """Raised when neither the requested nor the fallback credential resolves"""

    def __init__(
        self,
        credential_name: str,
        fallback_name: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        if fallback_name and fallback_name != credential_name:
            message = f"No API key configured for: {credential_name} or fallback key {fallback_name}"
        else:
            message = f"No API key configured for: {credential_name}"
        merged = {'credential_name': credential_name, 'fallback_name': fallback_name}
        merged.update(details or {})
        super().__init__(message, ErrorCode.CREDENTIAL_MISSING, merged)
        self.credential_name = credential_name
        self.fallback_name = fallback_name


class InvalidCategoryError(DevilRouterError):
    """Raised when a category is not part of the routing table"""

    def __init__(self, category: str, details: dict[str, Any] | None = None):
        super().__init__(f"Invalid category '{category}'", ErrorCode.INVALID_CATEGORY, details)
        self.category = category


class CredentialDecryptionError(DevilRouterError):
    """Raised when a stored secret cannot be decrypted with the active key"""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.DECRYPTION_ERROR, details)


class ConfigurationError(DevilRouterError):
    """Raised when routing or encryption configuration is invalid"""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(DevilRouterError):
    """Raised when input validation fails"""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)
