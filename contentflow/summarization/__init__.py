"""
Summarization for the contentflow pipeline.

Provides prompt building, response parsing and the LLM provider
abstraction used by the summarizer worker.
"""

from .prompt_builder import PromptBuilder
from .response_parser import ResponseParser, validate_summary
from .providers import (
    GenerationParams,
    SummaryProvider,
    ProviderChain,
    HTTPProvider,
    HuggingFaceProvider,
    build_provider_chain,
)
from .service import SummaryService, create_summary_service

__all__ = [
    "PromptBuilder",
    "ResponseParser",
    "validate_summary",
    "GenerationParams",
    "SummaryProvider",
    "ProviderChain",
    "HTTPProvider",
    "HuggingFaceProvider",
    "build_provider_chain",
    "SummaryService",
    "create_summary_service",
]
