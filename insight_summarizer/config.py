"""
Insight Summarizer Configuration Module
Centralized configuration for the summarization pipeline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

# Debug Mode Configuration
DEBUG_MODE = os.environ.get('DEBUG', 'false').lower() == 'true'

# Application Paths
APP_NAME = "InsightSummarizer"
APPDATA_DIR = Path(os.environ.get('APPDATA', os.path.expanduser('~/.config'))) / APP_NAME
CONFIG_DIR = APPDATA_DIR / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "summarizer.yaml"
CONFIG_FILE_ENV_VAR = "INSIGHT_SUMMARIZER_CONFIG"

# Chunking Defaults
# A chunk holds at most this many documents before the token check runs
DEFAULT_MAX_DOCS_PER_CHUNK = 10
# Leaves room in a 128k context window for the response
DEFAULT_MAX_TOKENS_PER_CHUNK = 100_000

# Retry Defaults
DEFAULT_MAX_RETRY_ATTEMPTS = 3
DEFAULT_BASE_RETRY_DELAY_MS = 1000

# Token Estimation
# Conservative heuristic: ~4 characters per token
CHARS_PER_TOKEN = 4
PROMPT_OVERHEAD_TOKENS = 500      # System prompt and response formatting
TOKENS_PER_DOCUMENT_OVERHEAD = 50  # Title, dates and separators per document

# Context Limits (tokens)
STANDARD_CONTEXT_LIMIT = 8_192
EXTENDED_CONTEXT_LIMIT = 128_000

# Pricing (USD per 1K tokens)
EXTENDED_CONTEXT_INPUT_COST_PER_1K = 0.01
EXTENDED_CONTEXT_OUTPUT_COST_PER_1K = 0.03
STANDARD_INPUT_COST_PER_1K = 0.03
STANDARD_OUTPUT_COST_PER_1K = 0.06
# Summaries are short compared to their input
ESTIMATED_OUTPUT_RATIO = 0.1

# Remote Generation Service
OPENAI_API_BASE = "https://api.openai.com/v1"
OPENAI_API_KEY_ENV_VAR = "OPENAI_API_KEY"
DEFAULT_MODEL_NAME = "gpt-4-0125-preview"
EXTENDED_CONTEXT_MODELS = (
    "gpt-4-0125-preview",
    "gpt-4-1106-preview",
    "gpt-4-turbo",
    "gpt-4-turbo-preview",
)
LEGACY_MODELS = ("gpt-4", "gpt-4-0613")
DEFAULT_COMPLETION_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7
GENERATION_TIMEOUT_SECONDS = 120

# Prompt Defaults
DEFAULT_MAX_DOCUMENT_PREVIEW = 500  # Characters of each document sent in a prompt
INSIGHT_STYLES = ("structured", "freeform")

# Trend Extraction Defaults
DEFAULT_TREND_MAX_TERMS = 10
DEFAULT_TREND_MIN_MENTIONS = 2
TREND_DATE_SOURCES = ("created", "modified")

# Logging Configuration
LOG_FILE_ENV_VAR = "INSIGHT_SUMMARIZER_LOG_FILE"
LOG_FILE = os.environ.get(LOG_FILE_ENV_VAR)
LOG_FORMAT = "[%(levelname)s %(asctime)s] %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


@dataclass(frozen=True)
class PromptConfig:
    """
    Options for the default prompt adapter.

    Attributes:
        include_metadata: Include created/modified dates for each document.
        max_document_preview: Characters of each document included before truncation.
        focus_areas: Extra topics the summary should pay attention to.
        insight_style: "structured" (headed sections) or "freeform".
    """
    include_metadata: bool = True
    max_document_preview: int = DEFAULT_MAX_DOCUMENT_PREVIEW
    focus_areas: tuple[str, ...] = ()
    insight_style: str = "structured"

    def __post_init__(self):
        if self.max_document_preview < 1:
            raise ValueError("max_document_preview must be at least 1")
        if self.insight_style not in INSIGHT_STYLES:
            raise ValueError(
                f"insight_style must be one of {INSIGHT_STYLES}, got '{self.insight_style}'"
            )


@dataclass(frozen=True)
class TrendOptions:
    """
    Options for the "Trends & Recurring Topics" prompt section.

    Attributes:
        include: Add the trends section to insight and combination prompts.
        max_terms: Number of top terms listed.
        min_mentions: Weighted mentions a term needs across all documents.
        entity_heuristics: Count front-matter people and #project tags as strong signals.
        date_source: Timestamp used for first/last seen ("created" or "modified").
    """
    include: bool = False
    max_terms: int = DEFAULT_TREND_MAX_TERMS
    min_mentions: int = DEFAULT_TREND_MIN_MENTIONS
    entity_heuristics: bool = True
    date_source: str = "created"

    def __post_init__(self):
        if self.max_terms < 1:
            raise ValueError("max_terms must be at least 1")
        if self.min_mentions < 0:
            raise ValueError("min_mentions cannot be negative")
        if self.date_source not in TREND_DATE_SOURCES:
            raise ValueError(
                f"date_source must be one of {TREND_DATE_SOURCES}, got '{self.date_source}'"
            )


@dataclass(frozen=True)
class SummaryConfig:
    """
    Options recognized by the summary orchestrator.

    Attributes:
        max_docs_per_chunk: Maximum documents per generation request.
        max_tokens_per_chunk: Estimated token budget per generation request.
        max_retry_attempts: Total attempts per request, including the first.
        base_retry_delay_ms: Linear backoff step when the service gives no hint.
        prompt: Options for the default prompt adapter.
        trends: Options for the trends section of the default prompt adapter.
    """
    max_docs_per_chunk: int = DEFAULT_MAX_DOCS_PER_CHUNK
    max_tokens_per_chunk: int = DEFAULT_MAX_TOKENS_PER_CHUNK
    max_retry_attempts: int = DEFAULT_MAX_RETRY_ATTEMPTS
    base_retry_delay_ms: int = DEFAULT_BASE_RETRY_DELAY_MS
    prompt: PromptConfig = field(default_factory=PromptConfig)
    trends: TrendOptions = field(default_factory=TrendOptions)

    def __post_init__(self):
        """Reject limits the pipeline cannot honor."""
        if self.max_docs_per_chunk < 1:
            raise ValueError("max_docs_per_chunk must be at least 1")
        if self.max_tokens_per_chunk < 1:
            raise ValueError("max_tokens_per_chunk must be at least 1")
        if self.max_retry_attempts < 1:
            raise ValueError("max_retry_attempts must be at least 1")
        if self.base_retry_delay_ms < 0:
            raise ValueError("base_retry_delay_ms cannot be negative")

    def with_changes(self, **changes: Any) -> SummaryConfig:
        """Return a validated copy with the given fields replaced."""
        return replace(self, **changes)


@dataclass(frozen=True)
class ClientSettings:
    """Connection settings for the remote generation service."""
    api_key: str | None
    model: str = DEFAULT_MODEL_NAME
    api_base: str = OPENAI_API_BASE
    max_tokens: int = DEFAULT_COMPLETION_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    timeout_seconds: float = GENERATION_TIMEOUT_SECONDS


def _resolve_config_path(path: Path | str | None) -> Path:
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_FILE_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_FILE


def load_config_file(path: Path | str | None = None) -> dict[str, Any]:
    """
    Load the raw YAML configuration document.

    Args:
        path: Explicit file path. Defaults to $INSIGHT_SUMMARIZER_CONFIG, then
              the per-user config directory.

    Returns:
        Parsed mapping, or an empty dict if the file is missing or unreadable.
    """
    from insight_summarizer.logging_config import debug_log

    config_path = _resolve_config_path(path)
    try:
        with open(config_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        debug_log(f"[Config] No config file at {config_path}. Using default values.")
        return {}
    except (OSError, yaml.YAMLError) as e:
        debug_log(f"[Config] ERROR: Failed to load or parse config file {config_path}: {e}")
        return {}

    if not isinstance(data, dict):
        debug_log(f"[Config] WARNING: {config_path} is not a mapping. Using default values.")
        return {}

    debug_log(f"[Config] Loaded configuration from {config_path}")
    return data


def _read_int(section: dict[str, Any], section_name: str, key: str) -> int:
    value = section[key]
    if isinstance(value, bool):
        raise ValueError(f"{section_name}.{key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{section_name}.{key} must be an integer, got {value!r}") from e


def _read_float(section: dict[str, Any], section_name: str, key: str) -> float:
    value = section[key]
    if isinstance(value, bool):
        raise ValueError(f"{section_name}.{key} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{section_name}.{key} must be a number, got {value!r}") from e


def _read_bool(section: dict[str, Any], section_name: str, key: str) -> bool:
    value = section[key]
    if not isinstance(value, bool):
        raise ValueError(f"{section_name}.{key} must be true or false, got {value!r}")
    return value


def _read_section(data: dict[str, Any], section_name: str) -> dict[str, Any]:
    section = data.get(section_name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{section_name}' must be a mapping, got {type(section).__name__}")
    return section


def load_summary_config(path: Path | str | None = None) -> SummaryConfig:
    """
    Build a SummaryConfig from the YAML file, with defaults for missing keys.

    Recognized layout:

        summary:
          max_docs_per_chunk: 10
          max_tokens_per_chunk: 100000
          max_retry_attempts: 3
          base_retry_delay_ms: 1000
        prompt:
          include_metadata: true
          max_document_preview: 500
          focus_areas: [hiring, roadmap]
          insight_style: structured
        trends:
          include: false
          max_terms: 10
          min_mentions: 2
          entity_heuristics: true
          date_source: created

    Numeric strings such as "10" are accepted. Values of the wrong type raise
    ValueError naming the offending key.
    """
    data = load_config_file(path)
    summary_section = _read_section(data, 'summary')
    prompt_section = _read_section(data, 'prompt')
    trends_section = _read_section(data, 'trends')

    prompt_fields: dict[str, Any] = {}
    if 'include_metadata' in prompt_section:
        prompt_fields['include_metadata'] = _read_bool(prompt_section, 'prompt', 'include_metadata')
    if 'max_document_preview' in prompt_section:
        prompt_fields['max_document_preview'] = _read_int(prompt_section, 'prompt', 'max_document_preview')
    if 'insight_style' in prompt_section:
        prompt_fields['insight_style'] = str(prompt_section['insight_style'])
    if 'focus_areas' in prompt_section:
        focus_areas = prompt_section['focus_areas'] or ()
        if isinstance(focus_areas, str):
            focus_areas = [focus_areas]
        prompt_fields['focus_areas'] = tuple(str(area) for area in focus_areas)

    trend_fields: dict[str, Any] = {}
    for key in ('include', 'entity_heuristics'):
        if key in trends_section:
            trend_fields[key] = _read_bool(trends_section, 'trends', key)
    for key in ('max_terms', 'min_mentions'):
        if key in trends_section:
            trend_fields[key] = _read_int(trends_section, 'trends', key)
    if 'date_source' in trends_section:
        trend_fields['date_source'] = str(trends_section['date_source'])

    summary_fields = {
        key: _read_int(summary_section, 'summary', key)
        for key in (
            'max_docs_per_chunk',
            'max_tokens_per_chunk',
            'max_retry_attempts',
            'base_retry_delay_ms',
        )
        if key in summary_section
    }
    return SummaryConfig(
        prompt=PromptConfig(**prompt_fields),
        trends=TrendOptions(**trend_fields),
        **summary_fields,
    )


def load_client_settings(path: Path | str | None = None) -> ClientSettings:
    """
    Resolve generation service settings.

    The API key always comes from the environment. Other values come from the
    `client:` section of the YAML file, falling back to module defaults.
    """
    client_section = _read_section(load_config_file(path), 'client')
    settings: dict[str, Any] = {}
    for key in ('model', 'api_base'):
        if key in client_section:
            settings[key] = str(client_section[key])
    if 'max_tokens' in client_section:
        settings['max_tokens'] = _read_int(client_section, 'client', 'max_tokens')
    for key in ('temperature', 'timeout_seconds'):
        if key in client_section:
            settings[key] = _read_float(client_section, 'client', key)
    return ClientSettings(api_key=os.environ.get(OPENAI_API_KEY_ENV_VAR), **settings)
