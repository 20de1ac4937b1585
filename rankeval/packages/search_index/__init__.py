"""
Text search index backends.

The retrieval runner talks to any ``SearchIndex``; scoring models are passed
through as opaque ``ScoringModel`` handles and interpreted by the backend.
``LuceneIndex`` lives in ``lucene_index`` and is not imported here because
importing it starts the JVM.
"""

from .base import SearchIndex, escape_query
from .mongo_search_index import MongoSearchIndex

__all__ = [
    "SearchIndex",
    "escape_query",
    "MongoSearchIndex",
]
