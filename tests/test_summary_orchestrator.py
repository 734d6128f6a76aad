"""
Tests for Map-Reduce Summary Orchestration

Tests the chunk → generate → combine pipeline:
- Single-chunk runs send one insight request
- Multi-chunk runs send one request per chunk plus one combination request
- Progress events arrive in stage order
- Errors emit one error event and propagate without a partial result
- Cancellation via stop()

Uses a scripted GenerationClient to avoid remote calls.
"""

from datetime import datetime
from queue import Queue

import pytest

from insight_summarizer.ai import ErrorKind, GenerationClient, GenerationError
from insight_summarizer.config import SummaryConfig, TrendOptions
from insight_summarizer.summarization import (
    Document,
    GenerationOutcome,
    ProgressEvent,
    QueueProgressSink,
    Stage,
    SummaryOrchestrator,
    TokenUsage,
)


class ScriptedClient(GenerationClient):
    """Returns scripted outcomes (or raises scripted errors) in order."""

    def __init__(self, script=None, default=None, on_send=None):
        self.script = list(script or [])
        self.default = default or GenerationOutcome(
            content="summary text", tokens_used=TokenUsage(100, 20, 120), model="gpt-4-turbo"
        )
        self.on_send = on_send
        self.prompts: list[str] = []

    def send(self, prompt: str) -> GenerationOutcome:
        self.prompts.append(prompt)
        if self.on_send:
            self.on_send(len(self.prompts))
        item = self.script.pop(0) if self.script else self.default
        if isinstance(item, Exception):
            raise item
        return item


def make_documents(count: int, chars: int = 40) -> list[Document]:
    timestamp = datetime(2024, 5, 20, 8, 0)
    return [
        Document(
            id=f"vault/Note {i}.md",
            content=f"Line about topic {i}\n" + "z" * chars,
            created_at=timestamp,
            modified_at=timestamp,
        )
        for i in range(count)
    ]


def fast_config(**overrides) -> SummaryConfig:
    overrides.setdefault("base_retry_delay_ms", 0)
    return SummaryConfig(**overrides)


def stages(events: list[ProgressEvent]):
    return [(e.stage, e.current_chunk, e.total_chunks) for e in events]


class TestSingleChunkRun:
    """Test runs where all documents fit in one chunk."""

    def test_one_request_and_direct_result(self):
        """Two short documents → one insight request; its outcome is the result."""
        client = ScriptedClient()
        orchestrator = SummaryOrchestrator(client, fast_config())
        documents = make_documents(2, chars=250)

        result = orchestrator.summarize(documents)

        assert len(client.prompts) == 1
        assert result.content == "summary text"
        assert result.documents_analyzed == 2
        assert result.chunks_processed == 1
        assert result.tokens_used == TokenUsage(100, 20, 120)
        assert result.model == "gpt-4-turbo"
        assert result.generation_time_ms >= 0

    def test_progress_sequence(self):
        """chunking(0/1) → generating(1/1) → complete(1/1)."""
        events: list[ProgressEvent] = []
        orchestrator = SummaryOrchestrator(ScriptedClient(), fast_config())

        orchestrator.summarize(make_documents(3), progress_callback=events.append)

        assert stages(events) == [
            (Stage.CHUNKING, 0, 1),
            (Stage.GENERATING, 1, 1),
            (Stage.COMPLETE, 1, 1),
        ]
        assert events[0].message == "Divided 3 documents into 1 chunk"

    def test_insight_prompt_lists_every_document(self):
        """The single request references every document title."""
        client = ScriptedClient()
        orchestrator = SummaryOrchestrator(client, fast_config())

        orchestrator.summarize(make_documents(3))

        for i in range(3):
            assert f"[[Note {i}]]" in client.prompts[0]

    def test_empty_document_set(self):
        """Zero documents still make one request with a placeholder listing."""
        client = ScriptedClient()
        orchestrator = SummaryOrchestrator(client, fast_config())

        result = orchestrator.summarize([])

        assert len(client.prompts) == 1
        assert "[No documents were analyzed]" in client.prompts[0]
        assert result.documents_analyzed == 0
        assert result.chunks_processed == 1


class TestMultiChunkRun:
    """Test map-reduce runs."""

    def test_twenty_five_documents_make_four_requests(self):
        """25 documents with a limit of 10 → 3 chunk requests + 1 combination."""
        client = ScriptedClient()
        orchestrator = SummaryOrchestrator(client, fast_config(max_docs_per_chunk=10))

        result = orchestrator.summarize(make_documents(25))

        assert len(client.prompts) == 4
        assert result.chunks_processed == 3
        assert result.documents_analyzed == 25

    def test_progress_sequence(self):
        """chunking → generating 1..N → combining → complete."""
        events: list[ProgressEvent] = []
        orchestrator = SummaryOrchestrator(ScriptedClient(), fast_config(max_docs_per_chunk=10))

        orchestrator.summarize(make_documents(25), progress_callback=events.append)

        assert stages(events) == [
            (Stage.CHUNKING, 0, 3),
            (Stage.GENERATING, 1, 3),
            (Stage.GENERATING, 2, 3),
            (Stage.GENERATING, 3, 3),
            (Stage.COMBINING, 3, 3),
            (Stage.COMPLETE, 3, 3),
        ]
        assert events[0].message == "Divided 25 documents into 3 chunks"
        assert all(e.error is None for e in events)

    def test_token_usage_summed_over_all_calls(self):
        """Usage from every chunk call and the combination call is added field-wise."""
        script = [
            GenerationOutcome("chunk 1", TokenUsage(10, 1, 11), "map-model"),
            GenerationOutcome("chunk 2", TokenUsage(20, 2, 22), "map-model"),
            GenerationOutcome("final", TokenUsage(30, 3, 33), "combine-model"),
        ]
        orchestrator = SummaryOrchestrator(ScriptedClient(script), fast_config(max_docs_per_chunk=2))

        result = orchestrator.summarize(make_documents(4))

        assert result.tokens_used == TokenUsage(60, 6, 66)
        assert result.content == "final"

    def test_model_reported_from_map_phase(self):
        """The result names the model of the last chunk call, not the combination call."""
        script = [
            GenerationOutcome("chunk 1", TokenUsage(), "map-model-a"),
            GenerationOutcome("chunk 2", TokenUsage(), "map-model-b"),
            GenerationOutcome("final", TokenUsage(), "combine-model"),
        ]
        orchestrator = SummaryOrchestrator(ScriptedClient(script), fast_config(max_docs_per_chunk=2))

        result = orchestrator.summarize(make_documents(4))

        assert result.model == "map-model-b"

    def test_combination_prompt_carries_chunk_summaries(self):
        """The final request contains each chunk summary and all document titles."""
        script = [
            GenerationOutcome("observations one", TokenUsage(), "m"),
            GenerationOutcome("observations two", TokenUsage(), "m"),
        ]
        client = ScriptedClient(script)
        orchestrator = SummaryOrchestrator(client, fast_config(max_docs_per_chunk=2))

        orchestrator.summarize(make_documents(4))

        combination_prompt = client.prompts[-1]
        assert "observations one" in combination_prompt
        assert "observations two" in combination_prompt
        for i in range(4):
            assert f"[[Note {i}]]" in combination_prompt

    def test_chunk_prompts_are_scoped(self):
        """Each chunk request names its position and only its own documents."""
        client = ScriptedClient()
        orchestrator = SummaryOrchestrator(client, fast_config(max_docs_per_chunk=2))

        orchestrator.summarize(make_documents(4))

        assert "chunk 1 of 2" in client.prompts[0]
        assert "chunk 2 of 2" in client.prompts[1]
        assert "DOCUMENT 1: Note 0" in client.prompts[0]
        assert "Note 2" not in client.prompts[0]

    def test_filter_metadata_passed_through(self):
        """Filter metadata shapes the prompts and is copied onto the result."""
        client = ScriptedClient()
        orchestrator = SummaryOrchestrator(client, fast_config())
        metadata = {"folder_name": "Meetings", "folder_path": "work/meetings"}

        result = orchestrator.summarize(make_documents(2), filter_metadata=metadata)

        assert result.filter_metadata == metadata
        assert 'from the folder "Meetings" (work/meetings)' in client.prompts[0]


class TestErrorHandling:
    """Test unrecoverable errors and retries."""

    def test_error_event_then_raise(self):
        """A non-retryable failure emits one error event and propagates."""
        auth_error = GenerationError(ErrorKind.AUTHENTICATION, "Invalid or missing OpenAI API key")
        events: list[ProgressEvent] = []
        orchestrator = SummaryOrchestrator(ScriptedClient([auth_error]), fast_config())

        with pytest.raises(GenerationError) as exc_info:
            orchestrator.summarize(make_documents(2), progress_callback=events.append)

        assert exc_info.value is auth_error
        assert stages(events) == [
            (Stage.CHUNKING, 0, 1),
            (Stage.GENERATING, 1, 1),
            (Stage.ERROR, 0, 0),
        ]
        assert events[-1].error is auth_error
        assert events[-1].message == auth_error.message

    def test_failure_mid_map_phase_aborts_run(self):
        """A failing second chunk stops the run before combining."""
        token_error = GenerationError(ErrorKind.TOKEN_LIMIT, "Request exceeds token limits")
        client = ScriptedClient([GenerationOutcome("ok", TokenUsage(), "m"), token_error])
        events: list[ProgressEvent] = []
        orchestrator = SummaryOrchestrator(client, fast_config(max_docs_per_chunk=2))

        with pytest.raises(GenerationError):
            orchestrator.summarize(make_documents(6), progress_callback=events.append)

        assert len(client.prompts) == 2
        assert Stage.COMBINING not in [e.stage for e in events]
        assert events[-1].stage is Stage.ERROR

    def test_transient_failure_is_retried(self):
        """A retryable failure followed by success completes normally."""
        network_error = GenerationError(ErrorKind.NETWORK, "server error", retryable=True)
        client = ScriptedClient([network_error])
        orchestrator = SummaryOrchestrator(client, fast_config())

        result = orchestrator.summarize(make_documents(2))

        assert len(client.prompts) == 2
        assert result.content == "summary text"

    def test_runs_without_progress_callback(self):
        """No sink → run still completes."""
        orchestrator = SummaryOrchestrator(ScriptedClient(), fast_config(max_docs_per_chunk=1))

        result = orchestrator.summarize(make_documents(3))

        assert result.chunks_processed == 3

    def test_stop_cancels_between_chunks(self):
        """stop() during the map phase prevents further requests."""
        holder = {}
        client = ScriptedClient(on_send=lambda count: holder["orchestrator"].stop())
        orchestrator = SummaryOrchestrator(client, fast_config(max_docs_per_chunk=1))
        holder["orchestrator"] = orchestrator

        with pytest.raises(GenerationError) as exc_info:
            orchestrator.summarize(make_documents(3))

        assert exc_info.value.kind is ErrorKind.CANCELLED
        assert len(client.prompts) == 1

    def test_stop_is_cleared_on_next_run(self):
        """A previous stop() does not cancel the next summarize call."""
        orchestrator = SummaryOrchestrator(ScriptedClient(), fast_config())
        orchestrator.stop()

        result = orchestrator.summarize(make_documents(1))

        assert result.content == "summary text"


class TestConfigurationAndProgressSink:
    """Test update_config, estimate_chunking and QueueProgressSink."""

    def test_update_config_rebuilds_chunker(self):
        """New limits apply to the next run."""
        client = ScriptedClient()
        orchestrator = SummaryOrchestrator(client, fast_config())

        orchestrator.update_config(max_docs_per_chunk=2)
        result = orchestrator.summarize(make_documents(4))

        assert orchestrator.config.max_docs_per_chunk == 2
        assert result.chunks_processed == 2

    def test_update_config_rejects_invalid_values(self):
        """Invalid values raise and leave the config unchanged."""
        orchestrator = SummaryOrchestrator(ScriptedClient(), fast_config())
        before = orchestrator.config

        with pytest.raises(ValueError):
            orchestrator.update_config(max_retry_attempts=0)

        assert orchestrator.config is before

    def test_trend_options_reach_prompts(self):
        """Trends from the config appear in insight and combination requests."""
        client = ScriptedClient()
        orchestrator = SummaryOrchestrator(client, fast_config(trends=TrendOptions(include=True)))

        orchestrator.summarize(make_documents(3))
        assert "## Trends & Recurring Topics\n- note: 6 mentions in 3 documents" in client.prompts[-1]

        orchestrator.update_config(max_docs_per_chunk=2)
        orchestrator.summarize(make_documents(3))
        assert "Trends & Recurring Topics" not in client.prompts[-2]
        assert "Trends & Recurring Topics" in client.prompts[-1]

    def test_estimate_chunking_preview(self):
        """Preview reports the chunk count without calling the client."""
        client = ScriptedClient()
        orchestrator = SummaryOrchestrator(client, fast_config(max_docs_per_chunk=10))

        estimate = orchestrator.estimate_chunking(make_documents(25))

        assert estimate.requires_chunking is True
        assert estimate.estimated_chunks == 3
        assert client.prompts == []

    def test_queue_sink_receives_ordered_events(self):
        """QueueProgressSink forwards ('progress', event) tuples in order."""
        ui_queue = Queue()
        orchestrator = SummaryOrchestrator(ScriptedClient(), fast_config(max_docs_per_chunk=2))

        orchestrator.summarize(make_documents(4), progress_callback=QueueProgressSink(ui_queue))

        messages = []
        while not ui_queue.empty():
            messages.append(ui_queue.get_nowait())
        assert all(kind == 'progress' for kind, _ in messages)
        assert [event.stage for _, event in messages] == [
            Stage.CHUNKING,
            Stage.GENERATING,
            Stage.GENERATING,
            Stage.COMBINING,
            Stage.COMPLETE,
        ]
