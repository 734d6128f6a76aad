"""
Summary Orchestrator - Map-Reduce Insight Summarization

Turns a list of documents into one narrative summary:

1. Chunking: DocumentChunker partitions documents by count and token budget
2. Map Phase: each chunk is sent as its own request, strictly in order
3. Reduce Phase: chunk summaries are merged by one combination request

A document set that fits in one chunk skips the reduce phase and is sent as a
single insight request. Every remote call goes through RetryExecutor, so
transient failures are retried and permanent ones abort the whole run.

Architecture:
    SummaryOrchestrator
        ├── DocumentChunker (partition)
        ├── PromptAdapter (request text per stage)
        └── RetryExecutor → GenerationClient (remote calls)

Usage:
    from insight_summarizer.ai import OpenAIGenerationClient
    from insight_summarizer.summarization import SummaryOrchestrator

    orchestrator = SummaryOrchestrator(OpenAIGenerationClient(api_key="sk-..."))
    result = orchestrator.summarize(
        documents,
        progress_callback=lambda event: print(event.message),
        filter_metadata={"folder_name": "Meetings"},
    )
    print(result.content)
"""

from __future__ import annotations

import threading
from typing import Any, Sequence

from insight_summarizer.ai.errors import GenerationError
from insight_summarizer.ai.generation_client import GenerationClient, GenerationOutcome, TokenUsage
from insight_summarizer.ai.retry_executor import RetryExecutor
from insight_summarizer.chunking_engine import Chunk, ChunkingEstimate, DocumentChunker
from insight_summarizer.config import SummaryConfig
from insight_summarizer.logging_config import Timer, debug_log, error, info

from .progress import ProgressCallback
from .prompt_adapters import InsightPromptAdapter, PromptAdapter
from .result_types import Document, ProgressEvent, Stage, SummaryResult


class SummaryOrchestrator:
    """
    Coordinates chunking, sequential chunk generation and combination.

    Progress is reported through an optional callback in stage order:
    chunking, generating (once per chunk), combining (multi-chunk runs only),
    then complete. On an unrecoverable error a single error event is emitted
    and the error is re-raised; no partial result is returned.

    Attributes:
        client: GenerationClient used for every remote call.
        config: SummaryConfig with chunking and retry limits.
        prompt_adapter: PromptAdapter producing request text.
    """

    def __init__(
        self,
        client: GenerationClient,
        config: SummaryConfig | None = None,
        prompt_adapter: PromptAdapter | None = None,
    ):
        self.client = client
        self.config = config or SummaryConfig()
        self._custom_adapter = prompt_adapter is not None
        self.prompt_adapter = prompt_adapter or InsightPromptAdapter(self.config.prompt, self.config.trends)

        # Cancellation support, shared with the retry executor
        self._stop_event = threading.Event()
        self._build_components()

    def _build_components(self):
        self.chunker = DocumentChunker(
            max_docs_per_chunk=self.config.max_docs_per_chunk,
            max_tokens_per_chunk=self.config.max_tokens_per_chunk,
        )
        self.retry_executor = RetryExecutor(
            self.client,
            max_attempts=self.config.max_retry_attempts,
            base_delay_ms=self.config.base_retry_delay_ms,
            stop_event=self._stop_event,
        )

    def stop(self):
        """Signal the running summarization to stop at the next call or backoff wait."""
        self._stop_event.set()

    def update_config(self, **changes: Any) -> SummaryConfig:
        """
        Replace the configuration with a validated copy carrying `changes`.

        Args:
            **changes: SummaryConfig field names and new values.

        Returns:
            The new SummaryConfig.

        Raises:
            ValueError: If a new value is out of range.
        """
        self.config = self.config.with_changes(**changes)
        if not self._custom_adapter:
            self.prompt_adapter = InsightPromptAdapter(self.config.prompt, self.config.trends)
        self._build_components()
        debug_log(f"[ORCHESTRATOR] Config updated: {changes}")
        return self.config

    def estimate_chunking(self, documents: Sequence[Document]) -> ChunkingEstimate:
        """Preview how many requests a document set would need."""
        return self.chunker.estimate_chunking(documents)

    def summarize(
        self,
        documents: Sequence[Document],
        progress_callback: ProgressCallback | None = None,
        filter_metadata: Any = None,
    ) -> SummaryResult:
        """
        Summarize documents with the chunk → generate → combine pipeline.

        Args:
            documents: Documents in the order they should be presented.
            progress_callback: Optional callable receiving ProgressEvent objects.
            filter_metadata: Opaque description of how documents were selected;
                passed to the prompt adapter and copied onto the result.

        Returns:
            SummaryResult for the whole document set.

        Raises:
            GenerationError: The unrecoverable error that aborted the run.
        """
        self._stop_event.clear()
        documents = list(documents)

        def emit(stage: Stage, current: int, total: int, message: str,
                 failure: GenerationError | None = None):
            if progress_callback:
                progress_callback(ProgressEvent(stage, current, total, message, failure))

        info(f"[ORCHESTRATOR] Starting summary of {len(documents)} documents")

        with Timer("Summary generation") as timer:
            try:
                chunks = self.chunker.partition(documents)
                total = len(chunks)
                plural = "" if total == 1 else "s"
                emit(Stage.CHUNKING, 0, total,
                     f"Divided {len(documents)} documents into {total} chunk{plural}")

                if total == 1:
                    emit(Stage.GENERATING, 1, 1, "Generating insights...")
                    outcome = self.retry_executor.invoke(
                        self.prompt_adapter.create_insight_prompt(chunks[0], filter_metadata)
                    )
                    content = outcome.content
                    tokens_used = outcome.tokens_used
                    model = outcome.model
                else:
                    content, tokens_used, model = self._map_reduce(
                        chunks, documents, filter_metadata, emit
                    )

                emit(Stage.COMPLETE, total, total, "Summary complete")

            except GenerationError as e:
                error(f"[ORCHESTRATOR] Summary failed ({e.kind.value}): {e.message}")
                emit(Stage.ERROR, 0, 0, e.message, e)
                raise

        generation_time_ms = int(timer.get_duration_ms())
        info(
            f"[ORCHESTRATOR] Completed {len(documents)} documents in {total} chunks, "
            f"{tokens_used.total} tokens, {generation_time_ms} ms"
        )

        return SummaryResult(
            content=content,
            documents_analyzed=len(documents),
            tokens_used=tokens_used,
            chunks_processed=total,
            generation_time_ms=generation_time_ms,
            model=model,
            filter_metadata=filter_metadata,
        )

    def _map_reduce(
        self,
        chunks: list[Chunk],
        documents: list[Document],
        filter_metadata: Any,
        emit,
    ) -> tuple[str, TokenUsage, str]:
        """
        Generate one summary per chunk, then combine them.

        Returns:
            (final content, summed usage, model of the last map-phase call)
        """
        total = len(chunks)
        chunk_summaries: list[str] = []
        tokens_used = TokenUsage()
        model = ""

        # === MAP: one request per chunk, in order ===
        for index, chunk in enumerate(chunks):
            emit(Stage.GENERATING, index + 1, total,
                 f"Processing chunk {index + 1} of {total} ({len(chunk)} documents)...")
            outcome: GenerationOutcome = self.retry_executor.invoke(
                self.prompt_adapter.create_chunk_prompt(chunk, index, total, filter_metadata)
            )
            chunk_summaries.append(outcome.content)
            tokens_used = tokens_used + outcome.tokens_used
            model = outcome.model
            debug_log(
                f"[ORCHESTRATOR] Chunk {index + 1}/{total} done "
                f"({outcome.tokens_used.total} tokens)"
            )

        # === REDUCE: merge chunk summaries ===
        emit(Stage.COMBINING, total, total, "Combining insights from all chunks...")
        combined = self.retry_executor.invoke(
            self.prompt_adapter.create_combination_prompt(
                chunk_summaries, documents, filter_metadata
            )
        )
        tokens_used = tokens_used + combined.tokens_used

        return combined.content, tokens_used, model
