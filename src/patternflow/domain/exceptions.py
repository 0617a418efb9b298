"""Exception hierarchy for the prompt orchestration engine.

Exception Hierarchy:
    PatternFlowError (base)
    ├── ConfigurationError (unrecoverable - fix settings)
    ├── ResourceNotFoundError (unrecoverable - fix request or stores)
    │   ├── PatternNotFoundError
    │   ├── ContextNotFoundError
    │   └── StrategyNotFoundError
    ├── TemplateError (unrecoverable - fix template)
    │   ├── UnknownDirectiveError
    │   └── DirectiveError
    ├── SelectionError (unrecoverable - fix vendor setup)
    │   ├── NoVendorsConfiguredError
    │   ├── VendorNotConfiguredError
    │   └── ModelNotAvailableError
    └── DispatchError (vendor side)
        ├── VendorError
        ├── EmptyResponseError
        └── StreamInterruptedError

Resolution and selection errors are fatal to a call and never retried.
Dispatch errors are surfaced as-is; retry policy belongs to the vendor
SDK clients or to an outer caller.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from .entities import ErrorType

# ============================================
# Base Exception
# ============================================


class PatternFlowError(Exception):
    """Base exception for all orchestration errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "PATTERN_NOT_FOUND")
        details: Additional context as a dictionary
        timestamp: When the error occurred
        cause: The original exception that caused this error
        recoverable: Whether this error might be recoverable with retry
    """

    default_code = "PATTERNFLOW_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        self.cause = cause
        self.recoverable = recoverable

        if cause:
            self.__cause__ = cause

    def __str__(self) -> str:
        parts = [f"[{self.code}]", self.message]
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================
# Configuration Errors
# ============================================


class ConfigurationError(PatternFlowError):
    """Raised when settings are missing or invalid."""

    default_code = "CONFIGURATION_ERROR"

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if key:
            details["key"] = key
        super().__init__(message, details=details, **kwargs)


# ============================================
# Resolution Errors
# ============================================


class ResourceNotFoundError(PatternFlowError):
    """Raised when a named pattern, context or strategy does not exist."""

    default_code = "NOT_FOUND"
    resource = "resource"

    def __init__(self, name: str, **kwargs):
        details = kwargs.pop("details", {})
        details[self.resource] = name
        super().__init__(f"{self.resource} not found: {name}", details=details, **kwargs)
        self.name = name


class PatternNotFoundError(ResourceNotFoundError):
    default_code = "PATTERN_NOT_FOUND"
    resource = "pattern"


class ContextNotFoundError(ResourceNotFoundError):
    default_code = "CONTEXT_NOT_FOUND"
    resource = "context"


class StrategyNotFoundError(ResourceNotFoundError):
    default_code = "STRATEGY_NOT_FOUND"
    resource = "strategy"


# ============================================
# Template Errors
# ============================================


class TemplateError(PatternFlowError):
    """Base class for template rendering failures."""

    default_code = "TEMPLATE_ERROR"


class UnknownDirectiveError(TemplateError):
    """Raised when a template names a directive nobody registered."""

    default_code = "UNKNOWN_DIRECTIVE"

    def __init__(self, directive: str, **kwargs):
        details = kwargs.pop("details", {})
        details["directive"] = directive
        super().__init__(f"Unknown directive: {directive}", details=details, **kwargs)
        self.directive = directive


class DirectiveError(TemplateError):
    """Raised when a known directive cannot handle its arguments."""

    default_code = "DIRECTIVE_ERROR"

    def __init__(self, directive: str, message: str, **kwargs):
        details = kwargs.pop("details", {})
        details["directive"] = directive
        super().__init__(message, details=details, **kwargs)
        self.directive = directive


# ============================================
# Selection Errors
# ============================================


class SelectionError(PatternFlowError):
    """Base class for vendor selection failures."""

    default_code = "SELECTION_ERROR"


class NoVendorsConfiguredError(SelectionError):
    default_code = "NO_VENDORS_CONFIGURED"

    def __init__(self, message: str = "No vendors are configured", **kwargs):
        super().__init__(message, **kwargs)


class VendorNotConfiguredError(SelectionError):
    default_code = "VENDOR_NOT_CONFIGURED"

    def __init__(self, vendor: str, **kwargs):
        details = kwargs.pop("details", {})
        details["vendor"] = vendor
        super().__init__(
            f"Vendor is not registered or not configured: {vendor}",
            details=details,
            **kwargs,
        )
        self.vendor = vendor


class ModelNotAvailableError(SelectionError):
    default_code = "MODEL_NOT_AVAILABLE"

    def __init__(self, model: Optional[str], vendor: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["model"] = model
        if vendor:
            details["vendor"] = vendor
        super().__init__(
            f"No configured vendor serves model: {model}", details=details, **kwargs
        )
        self.model = model
        self.vendor = vendor


class RawModeNotSupportedError(SelectionError):
    default_code = "RAW_MODE_NOT_SUPPORTED"

    def __init__(self, vendor: str, model: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        details["vendor"] = vendor
        if model:
            details["model"] = model
        super().__init__(
            f"Vendor does not accept raw-mode requests: {vendor}", details=details, **kwargs
        )
        self.vendor = vendor
        self.model = model


# ============================================
# Dispatch Errors
# ============================================


class DispatchError(PatternFlowError):
    """Base class for failures while talking to a vendor."""

    default_code = "DISPATCH_ERROR"


class VendorError(DispatchError):
    """Wraps a transport or protocol failure reported by a vendor.

    Attributes:
        vendor: Name of the failing vendor
        error_type: Classification of the failure
    """

    default_code = "VENDOR_ERROR"

    def __init__(
        self,
        message: str,
        vendor: Optional[str] = None,
        error_type: ErrorType = ErrorType.RECOVERABLE,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if vendor:
            details["vendor"] = vendor
        details["error_type"] = error_type.value
        kwargs.setdefault(
            "recoverable", error_type in (ErrorType.RECOVERABLE, ErrorType.RATE_LIMIT)
        )
        super().__init__(message, details=details, **kwargs)
        self.vendor = vendor
        self.error_type = error_type


class EmptyResponseError(DispatchError):
    """Raised when a vendor completes without any assistant text."""

    default_code = "EMPTY_RESPONSE"

    def __init__(self, vendor: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if vendor:
            details["vendor"] = vendor
        super().__init__("Vendor returned an empty response", details=details, **kwargs)
        self.vendor = vendor


class StreamInterruptedError(DispatchError):
    """Raised or relayed when a stream ends without vendor completion.

    Attributes:
        vendor: Name of the streaming vendor
        cancelled: True when the vendor call was cancelled rather than failed
        chunks_received: Number of chunks relayed before the interruption
    """

    default_code = "STREAM_INTERRUPTED"

    def __init__(
        self,
        message: str,
        vendor: Optional[str] = None,
        cancelled: bool = False,
        chunks_received: int = 0,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if vendor:
            details["vendor"] = vendor
        details["cancelled"] = cancelled
        details["chunks_received"] = chunks_received
        super().__init__(message, details=details, **kwargs)
        self.vendor = vendor
        self.cancelled = cancelled
        self.chunks_received = chunks_received

    @property
    def error_type(self) -> ErrorType:
        if self.cancelled:
            return ErrorType.CANCELLED
        return getattr(self.cause, "error_type", ErrorType.RECOVERABLE)
