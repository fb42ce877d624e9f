"""
Base exception class for the secretwasm SDK.

Every SDK error inherits from SecretError and carries an ErrorKind
discriminant together with a fixed set of typed attributes. Callers
should dispatch on ``error.kind`` rather than on the concrete class.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Discriminant for every error the SDK raises."""

    SECRET_ERROR = "SECRET_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    REST_ERROR = "REST_ERROR"
    # Encrypted error recovery
    MESSAGE_NOT_FOUND = "MESSAGE_NOT_FOUND"
    FAILED_TO_DECRYPT = "FAILED_TO_DECRYPT"
    # Client errors
    CHAIN_ID_EMPTY = "CHAIN_ID_EMPTY"
    ACCOUNT_DOES_NOT_EXIST = "ACCOUNT_DOES_NOT_EXIST"
    UNKNOWN_QUERY_TYPE = "UNKNOWN_QUERY_TYPE"
    ILL_FORMATTED_TX_HASH = "ILL_FORMATTED_TX_HASH"
    POST_TX_ERROR = "POST_TX_ERROR"
    NO_CONTRACT_FOUND = "NO_CONTRACT_FOUND"
    TOO_MANY_RESULTS = "TOO_MANY_RESULTS"
    QUERY_CONTRACT_ERROR = "QUERY_CONTRACT_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"


class SecretError(Exception):
    """
    Base exception for all secretwasm errors.

    Provides structured error information that can be serialized and logged.

    Attributes:
        message: Human-readable error description.
        kind: Machine-readable error kind.
        tx_hash: Optional transaction hash related to the error.
        details: Dictionary with additional error context.

    Example:
        >>> raise SecretError(
        ...     "Transaction failed",
        ...     kind=ErrorKind.POST_TX_ERROR,
        ...     tx_hash="A1B2...",
        ...     details={"code": 3}
        ... )
    """

    kind: ErrorKind = ErrorKind.SECRET_ERROR

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[ErrorKind] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize SecretError.

        Args:
            message: Human-readable error description.
            kind: Error kind. Defaults to the class-level kind.
            tx_hash: Optional transaction hash related to the error.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.tx_hash = tx_hash
        self.details = details or {}

    def __str__(self) -> str:
        """Return formatted error message."""
        parts = [f"[{self.kind.value}] {self.message}"]
        if self.tx_hash:
            parts.append(f"(tx: {self.tx_hash[:10]}...)")
        return " ".join(parts)

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"kind={self.kind.value!r}, "
            f"tx_hash={self.tx_hash!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a dictionary for JSON serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
            "tx_hash": self.tx_hash,
            "details": self.details,
        }


class ValidationError(SecretError):
    """Raised when caller input fails validation before any network call."""

    kind = ErrorKind.VALIDATION_ERROR

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, details=details)
        self.field = field


class RestError(SecretError):
    """
    Raised when the chain's REST endpoint answers with an HTTP error.

    The message is formatted as ``"<node error text> (HTTP <status>)"`` so
    that encrypted query errors keep the shape the node produces.
    """

    kind = ErrorKind.REST_ERROR

    def __init__(self, status_code: int, url: str, error_text: str) -> None:
        super().__init__(
            f"{error_text} (HTTP {status_code})",
            details={"status_code": status_code, "url": url},
        )
        self.status_code = status_code
        self.url = url
        self.error_text = error_text
