"""
Content store access for the contentflow pipeline.

Provides the store interface, the Sanity HTTP implementation and the GROQ
queries the workers run.
"""

from contentflow.cms.content_store import ContentStoreProvider
from contentflow.cms.queries import QUERY_BY_CONTENT_TYPE, SUMMARY_BY_CONTENT_ID
from contentflow.cms.sanity_store import SanityContentStore

__all__ = [
    "ContentStoreProvider",
    "SanityContentStore",
    "QUERY_BY_CONTENT_TYPE",
    "SUMMARY_BY_CONTENT_ID",
]
