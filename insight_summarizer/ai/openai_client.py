"""
OpenAI Generation Client for Insight Summarizer
Sends prompts to the OpenAI chat-completions REST API.

Every failure is translated into a GenerationError so the RetryExecutor can
decide what to do with it:
- HTTP 401 → authentication
- HTTP 429 → rate_limit (honors Retry-After)
- "token ... limit/maximum" in the message → token_limit
- HTTP 5xx, connection errors, timeouts → network
- Missing choices or content → invalid_response
- Anything else → unknown
"""

import re
import time

import requests

from ..config import (
    DEFAULT_COMPLETION_MAX_TOKENS,
    DEFAULT_MODEL_NAME,
    DEFAULT_TEMPERATURE,
    GENERATION_TIMEOUT_SECONDS,
    LEGACY_MODELS,
    OPENAI_API_BASE,
    ClientSettings,
)
from ..logging_config import debug_log, info
from ..token_estimator import is_extended_context_model
from .errors import ErrorKind, GenerationError
from .generation_client import GenerationClient, GenerationOutcome, TokenUsage

_RETRY_AFTER_PATTERN = re.compile(r"retry after (\d+)", re.IGNORECASE)


class OpenAIModelUtils:
    """Model identifier helpers; tier detection lives in token_estimator."""

    DEFAULT_MODEL = DEFAULT_MODEL_NAME

    is_extended_context_model = staticmethod(is_extended_context_model)

    @staticmethod
    def should_upgrade_model(model: str | None) -> bool:
        """Legacy or missing models are replaced by the default model."""
        if not model:
            return True
        return model in LEGACY_MODELS

    @classmethod
    def get_optimal_model(cls, requested_model: str | None) -> str:
        if cls.should_upgrade_model(requested_model):
            return cls.DEFAULT_MODEL
        return requested_model


class OpenAIGenerationClient(GenerationClient):
    """
    Generation client backed by the OpenAI chat-completions endpoint.

    Each send() is a single, non-streaming request with one user message.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str | None = None,
        max_tokens: int = DEFAULT_COMPLETION_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        api_base: str = OPENAI_API_BASE,
        timeout_seconds: float = GENERATION_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: OpenAI API key. A missing key fails on the first send().
            model: Requested model. Legacy or missing models are upgraded.
            max_tokens: Completion token cap per request.
            temperature: Sampling temperature.
            api_base: Base URL of the API.
            timeout_seconds: HTTP timeout per request.
            session: Optional requests.Session (connection reuse, testing).
        """
        self.api_key = api_key
        self.model = OpenAIModelUtils.get_optimal_model(model)
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.api_base = api_base.rstrip('/')
        self.timeout = timeout_seconds
        self.session = session or requests.Session()

        if model and model != self.model:
            info(f"[OPENAI] Model upgraded from '{model}' to '{self.model}'")

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "OpenAIGenerationClient":
        """Create a client from resolved ClientSettings."""
        return cls(
            api_key=settings.api_key,
            model=settings.model,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            api_base=settings.api_base,
            timeout_seconds=settings.timeout_seconds,
        )

    @property
    def current_model(self) -> str:
        return self.model

    def send(self, prompt: str) -> GenerationOutcome:
        """
        Generate a completion for a single prompt.

        Args:
            prompt: Full request text.

        Returns:
            GenerationOutcome with content, usage and model.

        Raises:
            GenerationError: Classified failure.
        """
        if not self.api_key:
            raise GenerationError(ErrorKind.AUTHENTICATION, "OpenAI API key is required")

        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

        debug_log(f"[OPENAI] Sending request: model={self.model}, prompt length={len(prompt)} chars")
        start_time = time.perf_counter()

        try:
            response = self.session.post(
                f"{self.api_base}/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise GenerationError(
                ErrorKind.NETWORK,
                f"Request timed out after {self.timeout} seconds",
                retryable=True,
            ) from e
        except requests.exceptions.RequestException as e:
            raise GenerationError(
                ErrorKind.NETWORK,
                "Network error - check your internet connection",
                retryable=True,
            ) from e

        if not response.ok:
            raise self._classify_http_error(response)

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationError(ErrorKind.INVALID_RESPONSE, "Response body is not valid JSON") from e

        outcome = self._parse_response(data)
        debug_log(
            f"[OPENAI] Completed in {time.perf_counter() - start_time:.2f}s: "
            f"{outcome.tokens_used.total} tokens, {len(outcome.content)} chars"
        )
        return outcome

    def _parse_response(self, data: dict) -> GenerationOutcome:
        choices = data.get('choices') or []
        if not choices:
            raise GenerationError(ErrorKind.INVALID_RESPONSE, "No completion choices returned from API")

        message = choices[0].get('message') or {}
        content = message.get('content')
        if not content:
            raise GenerationError(ErrorKind.INVALID_RESPONSE, "No content in API response")

        usage = data.get('usage') or {}
        return GenerationOutcome(
            content=content.strip(),
            tokens_used=TokenUsage(
                prompt=usage.get('prompt_tokens') or 0,
                completion=usage.get('completion_tokens') or 0,
                total=usage.get('total_tokens') or 0,
            ),
            model=data.get('model') or self.model,
        )

    def _classify_http_error(self, response: requests.Response) -> GenerationError:
        """Translate a non-2xx response into a GenerationError."""
        status = response.status_code
        try:
            body = response.json()
        except ValueError:
            body = {}
        api_message = (body.get('error') or {}).get('message') if isinstance(body, dict) else None
        message = f"HTTP {status}: {api_message or 'Unknown error'}"
        lowered = message.lower()

        debug_log(f"[OPENAI] Request failed: {message}")

        if status == 401 or 'authentication' in lowered:
            return GenerationError(ErrorKind.AUTHENTICATION, "Invalid or missing OpenAI API key")

        if status == 429 or 'rate limit' in lowered:
            return GenerationError(
                ErrorKind.RATE_LIMIT,
                "OpenAI API rate limit exceeded",
                retryable=True,
                retry_after_seconds=self._extract_retry_after(response, message),
            )

        if 'token' in lowered and ('limit' in lowered or 'maximum' in lowered):
            return GenerationError(ErrorKind.TOKEN_LIMIT, "Request exceeds token limits")

        if status >= 500:
            return GenerationError(ErrorKind.NETWORK, "OpenAI API server error", retryable=True)

        return GenerationError(ErrorKind.UNKNOWN, f"Unexpected error: {message}", retryable=True)

    @staticmethod
    def _extract_retry_after(response: requests.Response, message: str) -> int | None:
        header = response.headers.get('retry-after')
        if header:
            try:
                return int(header)
            except ValueError:
                debug_log(f"[OPENAI] Ignoring non-integer Retry-After header: {header}")
        match = _RETRY_AFTER_PATTERN.search(message)
        return int(match.group(1)) if match else None

    def test_connection(self) -> tuple[bool, str | None]:
        """
        Test the API connection and key validity.

        Returns:
            (True, None) on success, otherwise (False, error message).
        """
        try:
            self.send('Test connection. Respond with "OK".')
        except GenerationError as e:
            return False, e.message
        return True, None
