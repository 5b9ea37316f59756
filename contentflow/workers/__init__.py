"""Workers: fetch, clean and store. The summarizer lives in contentflow.summarization."""

from .cleaner import ContentCleaner, normalize_whitespace, portable_text_to_plain
from .fetcher import ContentFetcher, resolve_content_type
from .storage import SummaryStorage

__all__ = [
    "ContentCleaner",
    "ContentFetcher",
    "SummaryStorage",
    "normalize_whitespace",
    "portable_text_to_plain",
    "resolve_content_type",
]
