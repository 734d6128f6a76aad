"""
Document Chunking Engine

Partitions a document list into batches that respect two limits at once:
1. Count: at most max_docs_per_chunk documents per batch
2. Budget: estimated tokens per batch at most max_tokens_per_chunk

Documents are atomic. A document that alone exceeds the budget becomes a
chunk of its own rather than being truncated or dropped. Chunks preserve
input order, and concatenating them reproduces the input exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from insight_summarizer.config import (
    DEFAULT_MAX_DOCS_PER_CHUNK,
    DEFAULT_MAX_TOKENS_PER_CHUNK,
    PROMPT_OVERHEAD_TOKENS,
    TOKENS_PER_DOCUMENT_OVERHEAD,
)
from insight_summarizer.logging_config import debug_log
from insight_summarizer.token_estimator import estimate_single, estimate_tokens

if TYPE_CHECKING:
    from insight_summarizer.summarization.result_types import Document

Chunk = list["Document"]


@dataclass(frozen=True)
class ChunkingEstimate:
    """Preview of how a document set will be chunked."""
    requires_chunking: bool
    estimated_chunks: int
    token_estimate: int


class DocumentChunker:
    """
    Two-pass chunker: naive count slicing, then token-budget repair.

    Attributes:
        max_docs_per_chunk: Maximum documents per chunk.
        max_tokens_per_chunk: Estimated token budget per chunk.
    """

    def __init__(
        self,
        max_docs_per_chunk: int = DEFAULT_MAX_DOCS_PER_CHUNK,
        max_tokens_per_chunk: int = DEFAULT_MAX_TOKENS_PER_CHUNK,
    ):
        if max_docs_per_chunk < 1:
            raise ValueError("max_docs_per_chunk must be at least 1")
        if max_tokens_per_chunk < 1:
            raise ValueError("max_tokens_per_chunk must be at least 1")
        self.max_docs_per_chunk = max_docs_per_chunk
        self.max_tokens_per_chunk = max_tokens_per_chunk

    def partition(self, documents: Sequence[Document]) -> list[Chunk]:
        """
        Split documents into ordered chunks.

        Args:
            documents: Documents in processing order.

        Returns:
            List of chunks. Zero documents yields exactly one empty chunk so
            callers always have a chunk to process.
        """
        if not documents:
            return [[]]

        naive_chunks = [
            list(documents[i:i + self.max_docs_per_chunk])
            for i in range(0, len(documents), self.max_docs_per_chunk)
        ]

        validated: list[Chunk] = []
        for chunk in naive_chunks:
            estimate = estimate_tokens(chunk)
            if estimate.total_tokens <= self.max_tokens_per_chunk:
                validated.append(chunk)
            else:
                debug_log(
                    f"[CHUNKER] Group of {len(chunk)} documents estimated at "
                    f"{estimate.total_tokens} tokens exceeds {self.max_tokens_per_chunk}; subdividing"
                )
                validated.extend(self._subdivide(chunk))

        debug_log(f"[CHUNKER] {len(documents)} documents → {len(validated)} chunks")
        return validated

    def _subdivide(self, chunk: Chunk) -> list[Chunk]:
        # Running totals include the request overhead, and per-document ceilings
        # bound the combined ceiling, so every multi-document sub-chunk fits.
        sub_chunks: list[Chunk] = []
        current: Chunk = []
        current_tokens = PROMPT_OVERHEAD_TOKENS

        for document in chunk:
            document_tokens = estimate_single(document.content) + TOKENS_PER_DOCUMENT_OVERHEAD

            if current and current_tokens + document_tokens > self.max_tokens_per_chunk:
                sub_chunks.append(current)
                current = [document]
                current_tokens = PROMPT_OVERHEAD_TOKENS + document_tokens
            else:
                current.append(document)
                current_tokens += document_tokens

        if current:
            sub_chunks.append(current)

        return sub_chunks

    def estimate_chunking(self, documents: Sequence[Document]) -> ChunkingEstimate:
        """
        Report whether a document set needs more than one request.

        Args:
            documents: Candidate documents.

        Returns:
            ChunkingEstimate with the chunk count the partition would produce.
        """
        total_tokens = estimate_tokens(documents).total_tokens
        requires_chunking = (
            total_tokens > self.max_tokens_per_chunk
            or len(documents) > self.max_docs_per_chunk
        )
        return ChunkingEstimate(
            requires_chunking=requires_chunking,
            estimated_chunks=len(self.partition(documents)),
            token_estimate=total_tokens,
        )
