"""
Insight Summarizer AI Module
Handles calls to the remote text-generation service.

Architecture:
=============
    GenerationClient (ABC)          - send(prompt) -> GenerationOutcome
        └── OpenAIGenerationClient  - chat-completions over requests
    RetryExecutor                   - bounded retries around one client call
    GenerationError / ErrorKind     - failure taxonomy shared by all of the above

The orchestrator depends only on GenerationClient, so any backend that
raises GenerationError on failure can be injected.
"""

from .errors import ErrorKind, GenerationError
from .generation_client import GenerationClient, GenerationOutcome, TokenUsage
from .openai_client import OpenAIGenerationClient, OpenAIModelUtils
from .retry_executor import RetryExecutor

__all__ = [
    'ErrorKind',
    'GenerationError',
    'GenerationClient',
    'GenerationOutcome',
    'TokenUsage',
    'OpenAIGenerationClient',
    'OpenAIModelUtils',
    'RetryExecutor',
]
