"""
Generation client interface and the values it produces.

The orchestrator never builds transport details itself. It receives a
GenerationClient and calls send() once per request; everything about HTTP,
credentials and model selection lives behind that method.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class TokenUsage:
    """Token accounting reported by the generation service."""
    prompt: int = 0
    completion: int = 0
    total: int = 0

    def __add__(self, other: TokenUsage) -> TokenUsage:
        if not isinstance(other, TokenUsage):
            return NotImplemented
        return TokenUsage(
            prompt=self.prompt + other.prompt,
            completion=self.completion + other.completion,
            total=self.total + other.total,
        )


@dataclass(frozen=True)
class GenerationOutcome:
    """
    Result of one successful generation call.

    Attributes:
        content: Generated text.
        tokens_used: Usage reported for this call.
        model: Model identifier that produced the text.
    """
    content: str
    tokens_used: TokenUsage
    model: str


class GenerationClient(ABC):
    """
    Abstract boundary to a remote text-generation service.

    Implementations raise GenerationError for every failure so the
    RetryExecutor can classify it.
    """

    @abstractmethod
    def send(self, prompt: str) -> GenerationOutcome:
        """
        Send one prompt and return the generated outcome.

        Raises:
            GenerationError: If the call fails.
        """
        pass
