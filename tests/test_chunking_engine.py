"""
Tests for the document chunking engine.

Tests cover:
- Count-based slicing
- Token budget subdivision, including oversized documents
- Order preservation and full coverage of the input
- Chunking previews
"""

from datetime import datetime

import pytest

from insight_summarizer.chunking_engine import DocumentChunker
from insight_summarizer.summarization import Document
from insight_summarizer.token_estimator import estimate_tokens


def make_documents(count: int, chars: int = 40) -> list[Document]:
    timestamp = datetime(2024, 3, 1, 12, 0)
    return [
        Document(id=f"notes/doc-{i}.md", content="x" * chars, created_at=timestamp, modified_at=timestamp)
        for i in range(count)
    ]


def flatten(chunks):
    return [document for chunk in chunks for document in chunk]


class TestDocumentChunkerPartition:
    """Test DocumentChunker.partition."""

    def test_empty_input_yields_single_empty_chunk(self):
        """Zero documents → exactly one empty chunk."""
        assert DocumentChunker().partition([]) == [[]]

    def test_small_set_is_one_chunk(self):
        """Documents under both limits stay together."""
        documents = make_documents(3)

        chunks = DocumentChunker().partition(documents)

        assert chunks == [documents]

    def test_count_limit_slices_in_order(self):
        """25 short documents with a limit of 10 → 10, 10, 5."""
        documents = make_documents(25)

        chunks = DocumentChunker(max_docs_per_chunk=10).partition(documents)

        assert [len(chunk) for chunk in chunks] == [10, 10, 5]
        assert flatten(chunks) == documents

    def test_budget_subdivides_large_group(self):
        """A count-valid group over the token budget is split further."""
        documents = make_documents(10, chars=2_000)  # 500 tokens each
        chunker = DocumentChunker(max_docs_per_chunk=10, max_tokens_per_chunk=2_000)

        chunks = chunker.partition(documents)

        assert [len(chunk) for chunk in chunks] == [2, 2, 2, 2, 2]
        assert flatten(chunks) == documents

    def test_multi_document_chunks_respect_budget(self):
        """Every chunk with more than one document fits the token budget."""
        timestamp = datetime(2024, 3, 1)
        sizes = [100, 3_000, 800, 50, 4_000, 1_200, 10, 2_500, 600, 900, 300, 7_000]
        documents = [
            Document(id=f"d{i}", content="y" * size, created_at=timestamp, modified_at=timestamp)
            for i, size in enumerate(sizes)
        ]
        chunker = DocumentChunker(max_docs_per_chunk=5, max_tokens_per_chunk=1_500)

        chunks = chunker.partition(documents)

        assert flatten(chunks) == documents
        for chunk in chunks:
            assert 1 <= len(chunk) <= 5
            if len(chunk) > 1:
                assert estimate_tokens(chunk).total_tokens <= 1_500

    def test_oversized_document_gets_own_chunk(self):
        """A document larger than the budget is isolated, not dropped."""
        timestamp = datetime(2024, 3, 1)
        small_a = Document(id="a", content="s" * 40, created_at=timestamp, modified_at=timestamp)
        huge = Document(id="b", content="h" * 8_000, created_at=timestamp, modified_at=timestamp)
        small_c = Document(id="c", content="s" * 40, created_at=timestamp, modified_at=timestamp)
        chunker = DocumentChunker(max_docs_per_chunk=10, max_tokens_per_chunk=1_000)

        chunks = chunker.partition([small_a, huge, small_c])

        assert chunks == [[small_a], [huge], [small_c]]

    def test_partition_is_deterministic(self):
        """Same input and limits → identical partition."""
        documents = make_documents(17, chars=1_500)
        chunker = DocumentChunker(max_docs_per_chunk=4, max_tokens_per_chunk=1_200)

        assert chunker.partition(documents) == chunker.partition(documents)

    def test_partition_does_not_modify_input(self):
        """The caller's list is left untouched."""
        documents = make_documents(12)
        original = list(documents)

        DocumentChunker(max_docs_per_chunk=5).partition(documents)

        assert documents == original

    @pytest.mark.parametrize("kwargs", [
        {"max_docs_per_chunk": 0},
        {"max_tokens_per_chunk": 0},
    ])
    def test_invalid_limits_rejected(self, kwargs):
        """Limits below 1 raise ValueError."""
        with pytest.raises(ValueError):
            DocumentChunker(**kwargs)


class TestEstimateChunking:
    """Test DocumentChunker.estimate_chunking."""

    def test_small_set_needs_no_chunking(self):
        """Few short documents → one request."""
        estimate = DocumentChunker().estimate_chunking(make_documents(3))

        assert estimate.requires_chunking is False
        assert estimate.estimated_chunks == 1
        assert estimate.token_estimate == 30 + 500 + 150

    def test_count_over_limit_needs_chunking(self):
        """More documents than the count limit → several requests."""
        estimate = DocumentChunker(max_docs_per_chunk=10).estimate_chunking(make_documents(25))

        assert estimate.requires_chunking is True
        assert estimate.estimated_chunks == 3

    def test_estimate_matches_partition(self):
        """Estimated chunk count equals the actual partition length."""
        documents = make_documents(10, chars=2_000)
        chunker = DocumentChunker(max_tokens_per_chunk=2_000)

        estimate = chunker.estimate_chunking(documents)

        assert estimate.requires_chunking is True
        assert estimate.estimated_chunks == len(chunker.partition(documents))
