"""
Abstract text search index interface used by the retrieval runner.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Tuple

from rankeval.packages.evaluation_framework.models import ScoringModel

logger = logging.getLogger(__name__)

# Classic Lucene query syntax characters.
RESERVED_CHARS = frozenset('\\+-!():^[]"{}~*?|&/')


def escape_query(text: str) -> str:
    """Backslash-escape every reserved query syntax character."""
    return "".join("\\" + ch if ch in RESERVED_CHARS else ch for ch in text)


class SearchIndex(ABC):
    """Text index with pluggable scoring models.

    Lifecycle: ``index()`` documents, ``commit()`` once, then ``search()``.
    The index must not change after ``commit()``.
    """

    @abstractmethod
    def index(self, document_id: str, text: str) -> None:
        """Ingest one document. Callers pass lower-cased text."""
        pass

    @abstractmethod
    def commit(self) -> None:
        """Finish ingestion and make the index searchable."""
        pass

    @abstractmethod
    def search(self, query_text: str, model: ScoringModel, top_k: int) -> List[Tuple[str, float]]:
        """Return up to top_k (document_id, score) pairs, best first.

        Raises ``QueryParseError`` when the query cannot be parsed.
        """
        pass

    def escape(self, text: str) -> str:
        """Make arbitrary text safe for this index's query parser."""
        return escape_query(text)
