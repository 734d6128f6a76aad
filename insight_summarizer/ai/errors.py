"""
Generation error taxonomy.

Every failure crossing the generation client boundary is a GenerationError
carrying an ErrorKind and a retryable flag. The RetryExecutor uses the flag
to decide whether another attempt can succeed; the orchestrator surfaces the
final error to the caller unchanged.

Kinds:
    authentication   - missing or rejected credentials (never retried)
    rate_limit       - service asked us to slow down (retried, may carry a hint)
    token_limit      - request too large for the model (never retried)
    network          - connection failure, timeout or 5xx (retried)
    invalid_response - service answered without usable content (never retried)
    unknown          - anything unclassified (retried)
    cancelled        - caller stopped the run (never retried)
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of a failed generation call."""
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    TOKEN_LIMIT = "token_limit"
    NETWORK = "network"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN = "unknown"
    CANCELLED = "cancelled"


class GenerationError(Exception):
    """
    A failed call to the remote generation service.

    Attributes:
        kind: ErrorKind classification.
        message: Human-readable description.
        retryable: Whether the same request may succeed on a later attempt.
        retry_after_seconds: Explicit wait requested by the service, if any.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        retryable: bool = False,
        retry_after_seconds: int | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.retryable = retryable
        self.retry_after_seconds = retry_after_seconds

    def __repr__(self) -> str:
        return (
            f"GenerationError(kind={self.kind.value!r}, message={self.message!r}, "
            f"retryable={self.retryable}, retry_after_seconds={self.retry_after_seconds})"
        )

    @classmethod
    def from_exception(cls, exc: BaseException) -> GenerationError:
        """Wrap an unclassified exception as a retryable UNKNOWN error."""
        if isinstance(exc, GenerationError):
            return exc
        return cls(ErrorKind.UNKNOWN, f"Unexpected error: {exc}", retryable=True)

    @classmethod
    def cancelled(cls) -> GenerationError:
        return cls(ErrorKind.CANCELLED, "Summary generation was cancelled")
