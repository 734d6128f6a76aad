"""
Token and Cost Estimation

Approximates the size of a document set in the remote service's billing unit
without a tokenizer dependency. All functions are pure.

Heuristics:
1. Content tokens: ceil(characters / 4)
2. Overhead tokens: a fixed prompt overhead plus a per-document term for the
   title, dates and separators each document adds to a request
3. Cost: two pricing tiers selected from the model identifier, assuming the
   completion is about 10% of the input
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Sequence

from insight_summarizer.config import (
    CHARS_PER_TOKEN,
    ESTIMATED_OUTPUT_RATIO,
    EXTENDED_CONTEXT_INPUT_COST_PER_1K,
    EXTENDED_CONTEXT_LIMIT,
    EXTENDED_CONTEXT_MODELS,
    EXTENDED_CONTEXT_OUTPUT_COST_PER_1K,
    PROMPT_OVERHEAD_TOKENS,
    STANDARD_CONTEXT_LIMIT,
    STANDARD_INPUT_COST_PER_1K,
    STANDARD_OUTPUT_COST_PER_1K,
    TOKENS_PER_DOCUMENT_OVERHEAD,
)

if TYPE_CHECKING:
    from insight_summarizer.summarization.result_types import Document


class ModelTier(str, Enum):
    """Pricing tier of a model."""
    EXTENDED_CONTEXT = "extended_context"
    STANDARD = "standard"


@dataclass(frozen=True)
class TokenEstimate:
    """Estimated token footprint of a document set."""
    content_tokens: int
    overhead_tokens: int
    total_tokens: int
    character_count: int
    word_count: int
    document_count: int


@dataclass(frozen=True)
class CostEstimate:
    """Estimated USD cost of sending a token count, rounded to cents."""
    input_cost: float
    output_cost: float
    total_cost: float
    model_tier: ModelTier


@dataclass(frozen=True)
class LimitCheck:
    """Result of comparing a token count with the context limits."""
    within_soft_limit: bool
    within_hard_limit: bool
    recommendations: list[str] = field(default_factory=list)


def count_words(text: str) -> int:
    """Count whitespace-separated words, ignoring empty strings."""
    return len(text.split())


def estimate_single(content: str) -> int:
    """Estimate content tokens for one document's text."""
    return math.ceil(len(content) / CHARS_PER_TOKEN)


def estimate_tokens(documents: Sequence[Document]) -> TokenEstimate:
    """
    Estimate the token footprint of a set of documents.

    Args:
        documents: Documents that would be sent in one request.

    Returns:
        TokenEstimate with content, overhead and total token counts.
    """
    total_characters = 0
    total_words = 0
    for document in documents:
        total_characters += len(document.content)
        total_words += count_words(document.content)

    content_tokens = math.ceil(total_characters / CHARS_PER_TOKEN)
    overhead_tokens = PROMPT_OVERHEAD_TOKENS + len(documents) * TOKENS_PER_DOCUMENT_OVERHEAD

    return TokenEstimate(
        content_tokens=content_tokens,
        overhead_tokens=overhead_tokens,
        total_tokens=content_tokens + overhead_tokens,
        character_count=total_characters,
        word_count=total_words,
        document_count=len(documents),
    )


def _round_cents(amount: float) -> float:
    # Half-up rounding; round() would round halves to even
    return math.floor(amount * 100 + 0.5) / 100


def is_extended_context_model(model: str) -> bool:
    """Check if a model belongs to the extended-context (turbo) tier."""
    return model in EXTENDED_CONTEXT_MODELS or 'turbo' in model


def model_tier(model: str | None) -> ModelTier:
    """Detect the pricing tier; no model means the extended-context tier."""
    if not model or is_extended_context_model(model):
        return ModelTier.EXTENDED_CONTEXT
    return ModelTier.STANDARD


def estimate_cost(total_tokens: int, model: str | None = None) -> CostEstimate:
    """
    Estimate the cost of a request of `total_tokens` input tokens.

    Args:
        total_tokens: Estimated input tokens.
        model: Model identifier used to select the pricing tier.

    Returns:
        CostEstimate with input, output and total costs in USD.
    """
    tier = model_tier(model)
    if tier is ModelTier.EXTENDED_CONTEXT:
        input_per_1k = EXTENDED_CONTEXT_INPUT_COST_PER_1K
        output_per_1k = EXTENDED_CONTEXT_OUTPUT_COST_PER_1K
    else:
        input_per_1k = STANDARD_INPUT_COST_PER_1K
        output_per_1k = STANDARD_OUTPUT_COST_PER_1K

    estimated_output_tokens = math.ceil(total_tokens * ESTIMATED_OUTPUT_RATIO)
    input_cost = (total_tokens / 1000) * input_per_1k
    output_cost = (estimated_output_tokens / 1000) * output_per_1k

    return CostEstimate(
        input_cost=_round_cents(input_cost),
        output_cost=_round_cents(output_cost),
        total_cost=_round_cents(input_cost + output_cost),
        model_tier=tier,
    )


def check_limits(total_tokens: int) -> LimitCheck:
    """Compare a token count with the standard and extended context limits."""
    recommendations: list[str] = []

    if total_tokens > EXTENDED_CONTEXT_LIMIT:
        recommendations.append("Consider chunking documents into smaller batches")
        recommendations.append("Narrow the document set (e.g. a smaller date range)")
    elif total_tokens > STANDARD_CONTEXT_LIMIT:
        recommendations.append("Consider using an extended-context model for larger inputs")
        recommendations.append("Or chunk documents into smaller batches")

    return LimitCheck(
        within_soft_limit=total_tokens <= STANDARD_CONTEXT_LIMIT,
        within_hard_limit=total_tokens <= EXTENDED_CONTEXT_LIMIT,
        recommendations=recommendations,
    )


def format_estimate(estimate: TokenEstimate) -> str:
    """Human-readable one-line description of an estimate."""
    plural = "" if estimate.document_count == 1 else "s"
    return (
        f"{estimate.total_tokens:,} tokens estimated from {estimate.document_count} "
        f"document{plural} ({estimate.character_count:,} characters, "
        f"{estimate.word_count:,} words)"
    )
