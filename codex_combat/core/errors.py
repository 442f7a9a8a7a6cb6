"""
Codex Combat - Custom Error Types
Structured exceptions for stat resolution and catalog loading.

The resolution path itself never lets these escape: parsers raise
StatParseError internally and the normalizer turns it into a default.
"""
from typing import Dict, Any, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the stat engine."""
    UNKNOWN = "UNKNOWN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Stat block parsing
    STAT_PARSE_FAILED = "STAT_PARSE_FAILED"

    # Reference catalogs
    CATALOG_NOT_FOUND = "CATALOG_NOT_FOUND"
    CATALOG_INVALID = "CATALOG_INVALID"
    CATALOG_ENTRY_INVALID = "CATALOG_ENTRY_INVALID"


class EngineError(Exception):
    """
    Base exception for all engine errors.

    Provides structured error information with:
    - Error code for programmatic handling
    - Human-readable message
    - Additional context details
    - Whether the caller can carry on with a default
    """

    def __init__(
        self,
        code: ErrorCode = ErrorCode.UNKNOWN,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging or a caller's JSON response."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
                "recoverable": self.recoverable,
            }
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# =============================================================================
# Parsing Errors
# =============================================================================

class StatParseError(EngineError):
    """A stat block field could not be parsed into its structured form."""

    def __init__(self, field: str, value: Any, message: Optional[str] = None):
        super().__init__(
            code=ErrorCode.STAT_PARSE_FAILED,
            message=message or f"Could not parse {field} from {value!r}",
            details={"field": field, "value": repr(value)},
            recoverable=True,
        )
        self.field = field
        self.value = value


# =============================================================================
# Catalog Errors
# =============================================================================

class CatalogError(EngineError):
    """A reference catalog (effects, feats, equipment) could not be loaded."""

    def __init__(
        self,
        code: ErrorCode = ErrorCode.CATALOG_INVALID,
        message: str = "Catalog could not be loaded",
        **kwargs
    ):
        super().__init__(code=code, message=message, **kwargs)


class CatalogNotFoundError(CatalogError):
    """The catalog directory or file does not exist."""

    def __init__(self, path: str):
        super().__init__(
            code=ErrorCode.CATALOG_NOT_FOUND,
            message=f"Catalog path not found: {path}",
            details={"path": path},
            recoverable=False,
        )
