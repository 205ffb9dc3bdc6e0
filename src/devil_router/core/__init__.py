"""Core devil_router module — errors and logging shared by every layer."""

from devil_router.core.exceptions import (
    ConfigurationError,
    CredentialDecryptionError,
    CredentialMissingError,
    DevilRouterError,
    ErrorCode,
    InvalidCategoryError,
    ValidationError,
)
from devil_router.core.structured_logger import StructuredLogger, TraceContext, get_logger

__all__ = [
    "ConfigurationError",
    "CredentialDecryptionError",
    "CredentialMissingError",
    "DevilRouterError",
    "ErrorCode",
    "get_logger",
    "InvalidCategoryError",
    "StructuredLogger",
    "TraceContext",
    "ValidationError",
]
