"""
Result Types for Summary Generation

Data structures passed through the summarization pipeline:

    Document       - one unit of source text, supplied by the caller
    ProgressEvent  - transient stage notification sent to a progress sink
    SummaryResult  - the single durable output of a successful run

TokenUsage and GenerationOutcome live in insight_summarizer.ai because the
generation client produces them; they are re-exported here for convenience.

Usage:
    result = SummaryResult(
        content="# Insight Summary ...",
        documents_analyzed=25,
        tokens_used=TokenUsage(prompt=9000, completion=1200, total=10200),
        chunks_processed=3,
        generation_time_ms=41250,
        model="gpt-4-0125-preview",
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from insight_summarizer.ai.errors import GenerationError
from insight_summarizer.ai.generation_client import GenerationOutcome, TokenUsage


@dataclass(frozen=True)
class Document:
    """
    One source document. Never mutated by the pipeline.

    Attributes:
        id: Stable identifier, usually a vault-relative path ("notes/Standup.md").
        content: Full text.
        created_at: Creation timestamp.
        modified_at: Last modification timestamp.
    """
    id: str
    content: str
    created_at: datetime
    modified_at: datetime

    @property
    def title(self) -> str:
        """Last path segment of the id without a trailing .md."""
        name = self.id.rsplit('/', 1)[-1]
        if name.endswith('.md'):
            name = name[:-3]
        return name or self.id


class Stage(str, Enum):
    """Orchestrator state reported in progress events."""
    CHUNKING = "chunking"
    GENERATING = "generating"
    COMBINING = "combining"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressEvent:
    """
    Progress notification emitted by the orchestrator.

    Attributes:
        stage: Current stage.
        current_chunk: 1-based chunk being processed (0 before generation starts).
        total_chunks: Number of chunks in the run.
        message: Human-readable status line.
        error: The unrecoverable error, for ERROR events only.
    """
    stage: Stage
    current_chunk: int
    total_chunks: int
    message: str
    error: GenerationError | None = None


@dataclass(frozen=True)
class SummaryResult:
    """
    Output of one successful summarization run.

    Attributes:
        content: Final narrative summary.
        documents_analyzed: Number of input documents.
        tokens_used: Usage summed over every generation call in the run.
        chunks_processed: Number of chunks generated in the map phase.
        generation_time_ms: Wall-clock time from start to completion.
        model: Model reported by the last map-phase call.
        filter_metadata: Caller-supplied description of how documents were chosen.
    """
    content: str
    documents_analyzed: int
    tokens_used: TokenUsage
    chunks_processed: int
    generation_time_ms: int
    model: str
    filter_metadata: Any = None


__all__ = [
    'Document',
    'GenerationOutcome',
    'ProgressEvent',
    'Stage',
    'SummaryResult',
    'TokenUsage',
]
