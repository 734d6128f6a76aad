"""
Retry policy around a single generation call.

The RetryExecutor is the only place in the pipeline that decides whether a
failed call is attempted again. Per call:

    attempt 0 → send → success: return
                     → non-retryable: raise immediately
                     → retryable, attempts left: wait, attempt + 1
                     → retryable, attempts exhausted: raise last error

The wait is the service's retry-after hint when present, otherwise a linear
backoff of base_delay_ms * (attempt + 1). Both the wait and the start of each
attempt honor an optional threading.Event so a long run can be stopped.
"""

from __future__ import annotations

import threading

from insight_summarizer.config import DEFAULT_BASE_RETRY_DELAY_MS, DEFAULT_MAX_RETRY_ATTEMPTS
from insight_summarizer.logging_config import debug_log, warning

from .errors import GenerationError
from .generation_client import GenerationClient, GenerationOutcome


class RetryExecutor:
    """
    Invokes a GenerationClient with bounded, error-aware retries.

    Attributes:
        client: Generation client used for every attempt.
        max_attempts: Total attempts per request, including the first.
        base_delay_ms: Linear backoff step used when no retry-after hint exists.
        stop_event: Event that aborts the call with a CANCELLED error when set.
    """

    def __init__(
        self,
        client: GenerationClient,
        max_attempts: int = DEFAULT_MAX_RETRY_ATTEMPTS,
        base_delay_ms: int = DEFAULT_BASE_RETRY_DELAY_MS,
        stop_event: threading.Event | None = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if base_delay_ms < 0:
            raise ValueError("base_delay_ms cannot be negative")
        self.client = client
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.stop_event = stop_event or threading.Event()

    def invoke(self, request_text: str) -> GenerationOutcome:
        """
        Send the request, retrying retryable failures.

        Args:
            request_text: Prompt passed unchanged to the client on every attempt.

        Returns:
            The first successful GenerationOutcome.

        Raises:
            GenerationError: The first non-retryable error, the last error once
                attempts are exhausted, or a CANCELLED error.
        """
        last_error: GenerationError | None = None

        for attempt in range(self.max_attempts):
            if self.stop_event.is_set():
                raise GenerationError.cancelled()

            try:
                return self.client.send(request_text)
            except Exception as e:
                last_error = GenerationError.from_exception(e)

            if not last_error.retryable:
                debug_log(f"[RETRY] Not retrying {last_error.kind.value} error: {last_error.message}")
                raise last_error

            if attempt < self.max_attempts - 1:
                delay_ms = self.compute_delay_ms(last_error, attempt)
                warning(
                    f"[RETRY] {last_error.kind.value} error on attempt {attempt + 1}/"
                    f"{self.max_attempts}; retrying in {delay_ms} ms"
                )
                # wait() returns True only when the event was set during the delay
                if self.stop_event.wait(delay_ms / 1000):
                    raise GenerationError.cancelled()

        debug_log(f"[RETRY] Giving up after {self.max_attempts} attempts")
        raise last_error

    def compute_delay_ms(self, error: GenerationError, attempt: int) -> int:
        """Delay before the attempt following `attempt` (zero-based)."""
        if error.retry_after_seconds is not None:
            return error.retry_after_seconds * 1000
        return self.base_delay_ms * (attempt + 1)
