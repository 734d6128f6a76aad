"""
Trend Extraction

Finds terms that recur across a document set so the prompt can point the
model at them. Pure functions, no model calls.

Scoring:
1. Tokens come from the title (weight 2), markdown headings (1.5) and body (1)
2. Stopwords, numbers and short tokens are dropped; the rest are lightly stemmed
3. With entity heuristics on, front-matter people (2.5) and a #project tag (2)
   are counted verbatim
4. Terms below min_mentions are dropped; the rest are ranked by mentions,
   then by how many documents mention them, then alphabetically

Usage:
    trends = extract_trends(documents, TrendOptions(include=True, max_terms=5))
    for entry in trends:
        print(entry.term, entry.mentions, entry.notes_count)
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Sequence

from insight_summarizer.config import TrendOptions
from insight_summarizer.logging_config import debug_log

if TYPE_CHECKING:
    from insight_summarizer.summarization.result_types import Document

TITLE_WEIGHT = 2.0
HEADING_WEIGHT = 1.5
BODY_WEIGHT = 1.0
PERSON_WEIGHT = 2.5
PROJECT_TAG_WEIGHT = 2.0
PROJECT_TAG = "#project"

STOPWORDS = frozenset({
    # Articles, conjunctions, prepositions, pronouns
    'the', 'and', 'a', 'an', 'of', 'to', 'in', 'is', 'it', 'for', 'on', 'with', 'as', 'at',
    'by', 'from', 'or', 'be', 'are', 'was', 'were', 'that', 'this', 'these', 'those', 'but',
    'if', 'not', 'can', 'could', 'should', 'would', 'will', 'just', 'about', 'into', 'than',
    'then', 'so', 'very', 'over', 'under', 'between', 'because', 'while', 'during', 'where',
    'when', 'who', 'whom', 'which', 'what', 'why', 'how', 'also', 'we', 'you', 'they', 'he',
    'she', 'i', 'me', 'my', 'our', 'your', 'their', 'them', 'us', 'there', 'here', 'out',
    'up', 'down', 'off', 'again', 'once', 'only', 'both', 'each', 'few', 'more', 'most',
    'other', 'some', 'such', 'no', 'nor', 'too', 'own', 'same', 'ever', 'never', 'always',
    'sometimes', 'often', 'across', 'after', 'before', 'around', 'through', 'without',
    'within', 'toward', 'towards', 'until', 'since', 'among', 'amongst', 'per', 'via', 'vs',
    # Markdown and vault noise
    'http', 'https', 'www', 'com', 'md', 'jpg', 'png', 'gif', 'pdf', 'amp', 'nbsp',
})

_WIKI_LINK = re.compile(r'\[\[(.+?)\]\]')
_NON_TOKEN_CHARS = re.compile(r"[^\w#\s'-]|_")
_HEADING = re.compile(r'^\s*#{1,6}\s+')
_STEM_SUFFIX = re.compile(r'(ing|ed|ly|ness|ment|ers|er|s)$')
_HAS_WORD_CHAR = re.compile(r'[^\W_]')
_FRONTMATTER = re.compile(r'^---[\s\S]*?---', re.MULTILINE)
_PEOPLE_LINE = re.compile(r'^\s*(people|person|persons)\s*:\s*(.+)$', re.MULTILINE | re.IGNORECASE)
_PROJECT_TAG = re.compile(r'(^|\s)#project(/[^\s#]+)?\b', re.IGNORECASE)


@dataclass(frozen=True)
class TrendEntry:
    """
    One recurring term.

    Attributes:
        term: Normalized term (stemmed, or verbatim for people and tags).
        mentions: Weighted mention count, rounded half-up.
        notes_count: Number of documents mentioning the term.
        first_seen: ISO date of the earliest mentioning document.
        last_seen: ISO date of the latest mentioning document.
    """
    term: str
    mentions: int
    notes_count: int
    first_seen: str
    last_seen: str


@dataclass(frozen=True)
class TrendDelta:
    """Change in mentions of a term between two runs."""
    term: str
    delta_mentions: int


def tokenize(text: str) -> list[str]:
    """Lowercase tokens; wiki links are unwrapped and hashtags kept."""
    cleaned = _NON_TOKEN_CHARS.sub(' ', _WIKI_LINK.sub(r'\1', text)).lower()
    return [token.strip("'") for token in cleaned.split()]


def simple_stem(token: str) -> str:
    """Strip one common suffix; hashtags and short tokens are left alone."""
    if token.startswith('#') or len(token) <= 3:
        return token
    stem = _STEM_SUFFIX.sub('', token, count=1)
    return stem if len(stem) >= 3 else token


def title_from_id(document_id: str) -> str:
    """Document title with dashes and underscores read as spaces."""
    name = document_id.rsplit('/', 1)[-1]
    name = re.sub(r'\.md$', '', name, flags=re.IGNORECASE)
    return re.sub(r'[-_]', ' ', name)


def frontmatter_people(content: str) -> list[str]:
    """Names from a `people:` (or `person:`) front-matter line."""
    frontmatter = _FRONTMATTER.search(content)
    if not frontmatter:
        return []
    people_line = _PEOPLE_LINE.search(frontmatter.group(0))
    if not people_line:
        return []
    raw = people_line.group(2).strip()
    if raw.startswith('['):
        raw = raw[1:]
    if raw.endswith(']'):
        raw = raw[:-1]
    return [name.strip() for name in re.split(r'[,;]+', raw) if name.strip()]


def has_project_tag(content: str) -> bool:
    return bool(_PROJECT_TAG.search(content))


def _normalize(token: str) -> str | None:
    # None when the token carries no signal
    if not token or token in STOPWORDS or token.isdigit():
        return None
    if not _HAS_WORD_CHAR.search(token):
        return None
    if not token.startswith('#') and len(token) < 3:
        return None
    normalized = simple_stem(token)
    if not normalized.startswith('#') and len(normalized) < 3:
        return None
    return normalized


def _weighted_terms(document: Document, options: TrendOptions) -> list[tuple[str, float]]:
    terms: list[tuple[str, float]] = []

    for token in tokenize(title_from_id(document.id)):
        terms.append((token, TITLE_WEIGHT))

    for line in document.content.split('\n'):
        if not line:
            continue
        if _HEADING.match(line):
            weight = HEADING_WEIGHT
            line = _HEADING.sub('', line)
        else:
            weight = BODY_WEIGHT
        terms.extend((token, weight) for token in tokenize(line))

    terms = [
        (normalized, weight)
        for normalized, weight in ((_normalize(token), weight) for token, weight in terms)
        if normalized
    ]

    # Entity terms skip stopword and stemming rules
    if options.entity_heuristics:
        for person in frontmatter_people(document.content):
            terms.append((person.lower(), PERSON_WEIGHT))
        if has_project_tag(document.content):
            terms.append((PROJECT_TAG, PROJECT_TAG_WEIGHT))

    return terms


def extract_trends(documents: Sequence[Document], options: TrendOptions | None = None) -> list[TrendEntry]:
    """
    Rank recurring terms across documents.

    Args:
        documents: Documents to scan.
        options: Limits, heuristics and date source. Defaults to TrendOptions().

    Returns:
        Up to options.max_terms entries, most mentioned first.
    """
    options = options or TrendOptions()
    mentions: dict[str, float] = {}
    notes: dict[str, set[int]] = {}
    first_seen: dict[str, datetime] = {}
    last_seen: dict[str, datetime] = {}

    for index, document in enumerate(documents):
        timestamp = document.modified_at if options.date_source == "modified" else document.created_at

        for term, weight in _weighted_terms(document, options):
            mentions[term] = mentions.get(term, 0.0) + weight
            notes.setdefault(term, set()).add(index)
            if term not in first_seen or timestamp < first_seen[term]:
                first_seen[term] = timestamp
            if term not in last_seen or timestamp > last_seen[term]:
                last_seen[term] = timestamp

    entries = [
        TrendEntry(
            term=term,
            mentions=math.floor(total + 0.5),
            notes_count=len(notes[term]),
            first_seen=first_seen[term].date().isoformat(),
            last_seen=last_seen[term].date().isoformat(),
        )
        for term, total in mentions.items()
        if total >= options.min_mentions
    ]
    entries.sort(key=lambda entry: (-entry.mentions, -entry.notes_count, entry.term))

    debug_log(
        f"[TRENDS] {len(entries)} of {len(mentions)} terms met {options.min_mentions} mentions "
        f"across {len(documents)} documents"
    )
    return entries[:options.max_terms]


def compute_delta(previous: Sequence[TrendEntry], current: Sequence[TrendEntry]) -> list[TrendDelta]:
    """Mention change for each current term; terms new in `current` count from zero."""
    previous_mentions = {entry.term: entry.mentions for entry in previous}
    return [
        TrendDelta(term=entry.term, delta_mentions=entry.mentions - previous_mentions.get(entry.term, 0))
        for entry in current
    ]


def format_trends_section(entries: Sequence[TrendEntry]) -> str:
    """Markdown "Trends & Recurring Topics" section for a prompt."""
    if not entries:
        return "## Trends & Recurring Topics\n[No terms recurred often enough to report]"

    lines = ["## Trends & Recurring Topics"]
    for entry in entries:
        plural = "" if entry.notes_count == 1 else "s"
        if entry.first_seen == entry.last_seen:
            seen = entry.first_seen
        else:
            seen = f"{entry.first_seen} to {entry.last_seen}"
        lines.append(
            f"- {entry.term}: {entry.mentions} mentions in {entry.notes_count} "
            f"document{plural} ({seen})"
        )
    return "\n".join(lines)
