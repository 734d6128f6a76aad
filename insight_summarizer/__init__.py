"""
Insight Summarizer

Map-reduce summarization of document collections through a remote
text-generation service.

    from insight_summarizer import SummaryOrchestrator, OpenAIGenerationClient
    from insight_summarizer.config import load_client_settings, load_summary_config

    client = OpenAIGenerationClient.from_settings(load_client_settings())
    orchestrator = SummaryOrchestrator(client, load_summary_config())
    result = orchestrator.summarize(documents)
"""

from insight_summarizer.ai import ErrorKind, GenerationError, OpenAIGenerationClient
from insight_summarizer.summarization import Document, SummaryOrchestrator, SummaryResult

__version__ = "0.1.0"

__all__ = [
    'Document',
    'ErrorKind',
    'GenerationError',
    'OpenAIGenerationClient',
    'SummaryOrchestrator',
    'SummaryResult',
]
