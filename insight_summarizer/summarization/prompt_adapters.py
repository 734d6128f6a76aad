"""
Summary Prompt Adapters

Generates the request text for each generation stage:
1. Insight prompt: the whole document set fits in one request
2. Chunk prompt: one slice of a larger set (map phase)
3. Combination prompt: merges chunk observations (reduce phase)

Design Principles:
1. Abstract base class so callers can supply their own wording
2. The orchestrator only depends on the three methods below
3. A "Documents Referenced" listing is rebuilt from the documents themselves,
   so the final summary always names every analyzed document

Usage:
    from insight_summarizer.summarization import InsightPromptAdapter

    adapter = InsightPromptAdapter(PromptConfig(insight_style="freeform"))
    prompt = adapter.create_chunk_prompt(
        documents=chunk,
        chunk_index=0,
        total_chunks=3,
        context={"folder_name": "Meetings"},
    )
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Sequence

from insight_summarizer.config import PromptConfig, TrendOptions
from insight_summarizer.trend_extractor import extract_trends, format_trends_section

from .result_types import Document

_FRONTMATTER_LINE = re.compile(r'^\w+:\s')

# Used when a document has no line worth quoting; picked by position, not at random
_EMPTY_DOCUMENT_REMARKS = (
    "exists but says nothing",
    "definitely a document, probably",
    "emotionally ambiguous",
    "the strong silent type",
    "speaks in riddles",
    "minimalist to a fault",
    "left us hanging",
    "chose mystery over clarity",
)

_PERSONA = """You read everything because you're curious, not because you're trying to be helpful. \
You notice what keeps showing up, what feels unresolved, and what the writer keeps circling \
without quite saying. Don't conclude for them; make the mess visible. If something is vague, \
let it be vague. Dry and observational is fine. Keep it useful."""

_STRUCTURED_OUTPUT = """OUTPUT REQUIREMENTS:
- Clean Markdown, no code fences
- Reference documents with [[Document Title]] links using exact titles
- Group insights by theme, not document by document
- Focus on what shows up repeatedly, not what sounds important

OUTPUT STRUCTURE:
# Insight Summary

## Key Themes
## Important People
## Action Items & Next Steps

End with a "Documents Referenced" section."""

_FREEFORM_OUTPUT = """OUTPUT INSTRUCTIONS:
- Write in a natural voice; headings are optional
- Reference documents with [[Document Title]] links
- Point out patterns, contradictions and unresolved bits
- End with a "Documents Referenced" section"""


class PromptAdapter(ABC):
    """
    Abstract interface for generating stage-specific request text.

    `context` is the caller's opaque filter metadata; implementations may use
    it to describe where the documents came from.
    """

    @abstractmethod
    def create_insight_prompt(self, documents: Sequence[Document], context: Any = None) -> str:
        """Create the request for a document set that fits in one chunk."""
        pass

    @abstractmethod
    def create_chunk_prompt(
        self,
        documents: Sequence[Document],
        chunk_index: int,
        total_chunks: int,
        context: Any = None,
    ) -> str:
        """Create the request for chunk `chunk_index` (zero-based) of `total_chunks`."""
        pass

    @abstractmethod
    def create_combination_prompt(
        self,
        chunk_summaries: Sequence[str],
        documents: Sequence[Document],
        context: Any = None,
    ) -> str:
        """Create the request merging per-chunk summaries into one narrative."""
        pass


class InsightPromptAdapter(PromptAdapter):
    """
    Default adapter producing theme-oriented insight summaries.

    When trends are enabled, insight and combination prompts carry a
    "Trends & Recurring Topics" section computed from the full document set.

    Attributes:
        config: PromptConfig controlling metadata, truncation, focus and style.
        trends: TrendOptions controlling the trends section.
    """

    def __init__(self, config: PromptConfig | None = None, trends: TrendOptions | None = None):
        self.config = config or PromptConfig()
        self.trends = trends or TrendOptions()

    def create_insight_prompt(self, documents: Sequence[Document], context: Any = None) -> str:
        sections = [
            self._system_prompt(),
            self._documents_content(documents),
            self._instructions(len(documents), context),
            self._trends_section(documents),
            documents_referenced_section(documents),
        ]
        return "\n\n".join(section for section in sections if section)

    def create_chunk_prompt(
        self,
        documents: Sequence[Document],
        chunk_index: int,
        total_chunks: int,
        context: Any = None,
    ) -> str:
        position = f"chunk {chunk_index + 1} of {total_chunks}"
        system_prompt = (
            f"You're looking at a slice of documents ({position}). Don't summarize or "
            "conclude; say what stands out, who shows up, and what looks unfinished.\n\n"
            "FORMAT RULES:\n"
            "- No required headings\n"
            "- Use [[Document Title]] for every document reference\n"
            "- Stay short if little shows up"
        )
        instructions = (
            f"Look through these {len(documents)} documents {describe_context(context)} "
            f"({position}). What's worth noticing? Who keeps showing up? "
            "What feels unfinished?"
        )
        return "\n\n".join([system_prompt, self._documents_content(documents), instructions])

    def create_combination_prompt(
        self,
        chunk_summaries: Sequence[str],
        documents: Sequence[Document],
        context: Any = None,
    ) -> str:
        summaries_content = "\n\n".join(
            f"--- CHUNK {index + 1} SUMMARY ---\n{summary}"
            for index, summary in enumerate(chunk_summaries)
        )
        instructions = (
            f"Here are {len(chunk_summaries)} sets of observations from {len(documents)} "
            f"documents {describe_context(context)}.\n\n"
            "What shows up across chunks? Where do things connect or contradict? "
            "What is unresolved or oddly persistent? Don't force connections.\n\n"
            "End with a \"Documents Referenced\" section listing every analyzed document."
        )
        sections = [
            self._system_prompt(),
            summaries_content,
            self._focus_section(),
            instructions,
            self._trends_section(documents),
            documents_referenced_section(documents),
        ]
        return "\n\n".join(section for section in sections if section)

    def _system_prompt(self) -> str:
        output = _FREEFORM_OUTPUT if self.config.insight_style == "freeform" else _STRUCTURED_OUTPUT
        return f"{_PERSONA}\n\n{output}"

    def _documents_content(self, documents: Sequence[Document]) -> str:
        parts = [f"DOCUMENTS TO ANALYZE ({len(documents)} total):"]
        limit = self.config.max_document_preview

        for index, document in enumerate(documents, start=1):
            content = document.content
            if len(content) > limit:
                content = content[:limit] + "...[truncated]"

            lines = ["---", f"DOCUMENT {index}: {document.title}"]
            if self.config.include_metadata:
                lines.append(f"Created: {document.created_at.date().isoformat()}")
                lines.append(f"Modified: {document.modified_at.date().isoformat()}")
            lines.append(f"\nContent:\n{content}")
            parts.append("\n".join(lines))

        return "\n\n".join(parts)

    def _instructions(self, document_count: int, context: Any) -> str:
        instructions = (
            "ANALYSIS INSTRUCTIONS:\n\n"
            f"Analyze the {document_count} documents above {describe_context(context)}.\n\n"
            "Focus on:\n"
            "1. Themes: recurring topics and patterns across documents\n"
            "2. People: who is mentioned and in what context\n"
            "3. Actions: tasks, decisions, commitments and next steps\n"
            "4. Connections: relationships and dependencies between documents"
        )
        focus = self._focus_section()
        if focus:
            instructions += f"\n\n{focus}"
        return instructions

    def _trends_section(self, documents: Sequence[Document]) -> str:
        if not self.trends.include:
            return ""
        section = format_trends_section(extract_trends(documents, self.trends))
        return f"{section}\n\nTreat these counts as hints about what recurs, not as conclusions."

    def _focus_section(self) -> str:
        if not self.config.focus_areas:
            return ""
        areas = "\n".join(f"- {area}" for area in self.config.focus_areas)
        return f"SPECIAL FOCUS AREAS:\n{areas}"


def describe_context(context: Any) -> str:
    """Describe where documents came from, using caller filter metadata."""
    if isinstance(context, dict):
        folder_name = context.get('folder_name')
        if folder_name:
            folder_path = context.get('folder_path')
            suffix = f" ({folder_path})" if folder_path else ""
            return f'from the folder "{folder_name}"{suffix}'
        start_date = context.get('start_date')
        end_date = context.get('end_date')
        if start_date and end_date:
            return f"from the period {start_date} to {end_date}"
    return "from the selected collection"


def first_meaningful_line(content: str) -> str:
    """First line that is not blank, a heading, a rule or frontmatter."""
    for line in content.split('\n'):
        stripped = line.strip()
        if (
            stripped
            and not stripped.startswith('#')
            and not stripped.startswith('---')
            and not _FRONTMATTER_LINE.match(stripped)
        ):
            return stripped
    return ""


def documents_referenced_section(documents: Sequence[Document]) -> str:
    """Build the "Documents Referenced" listing for a document set."""
    if not documents:
        return "## Documents Referenced\n[No documents were analyzed]"

    entries = []
    for index, document in enumerate(documents):
        observation = first_meaningful_line(document.content)
        if not observation:
            observation = _EMPTY_DOCUMENT_REMARKS[index % len(_EMPTY_DOCUMENT_REMARKS)]
        elif len(observation) > 80:
            observation = observation[:77] + "..."
        entries.append(f"- [[{document.title}]]: {observation}")

    return "## Documents Referenced\n" + "\n".join(entries)
