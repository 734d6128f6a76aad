"""
Summarization Package for Insight Summarizer - Unified API for Summary Generation.

This is the main entry point for all summarization functionality. Import
everything summarization-related from this package:

    from insight_summarizer.summarization import (
        # Orchestration
        SummaryOrchestrator, SummaryResult,
        # Inputs and progress
        Document, ProgressEvent, Stage, QueueProgressSink,
        # Prompting
        PromptAdapter, InsightPromptAdapter,
    )

Architecture:
    ┌─────────────────────────────────────────────────────────────┐
    │  insight_summarizer.summarization (this package)            │
    ├─────────────────────────────────────────────────────────────┤
    │  SummaryOrchestrator (chunk → generate → combine)           │
    │            ↓                                                │
    │  DocumentChunker → PromptAdapter                            │
    │            ↓                                                │
    │  RetryExecutor → GenerationClient → SummaryResult           │
    └─────────────────────────────────────────────────────────────┘

Map-Reduce Flow:
1. Map Phase: each chunk → chunk prompt → chunk summary
   (a single chunk is sent as one insight prompt instead)

2. Reduce Phase: chunk summaries → combination prompt → final narrative
"""

# Result types
from .result_types import (
    Document,
    GenerationOutcome,
    ProgressEvent,
    Stage,
    SummaryResult,
    TokenUsage,
)

# Progress reporting
from .progress import ProgressCallback, QueueProgressSink

# Prompting
from .prompt_adapters import InsightPromptAdapter, PromptAdapter

# Orchestration
from .summary_orchestrator import SummaryOrchestrator

# Chunking (re-exported from package root for unified API)
from insight_summarizer.chunking_engine import Chunk, ChunkingEstimate, DocumentChunker

__all__ = [
    # Chunking
    'Chunk',
    'ChunkingEstimate',
    'DocumentChunker',
    # Result types
    'Document',
    'GenerationOutcome',
    'ProgressEvent',
    'Stage',
    'SummaryResult',
    'TokenUsage',
    # Progress
    'ProgressCallback',
    'QueueProgressSink',
    # Prompting
    'PromptAdapter',
    'InsightPromptAdapter',
    # Orchestration
    'SummaryOrchestrator',
]
