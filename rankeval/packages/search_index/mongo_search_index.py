"""
Search index backed by MongoDB Atlas Search.

Each scoring model maps to one Atlas Search index on the same collection; the
index definition selects the field similarity (e.g. ``bm25``). Queries go
through the ``queryString`` operator, which uses Lucene query syntax.
"""

import logging
from typing import Any, Dict, List, Tuple

from pymongo.collection import Collection
from pymongo.errors import OperationFailure

from rankeval.packages.evaluation_framework.errors import IndexStateError, QueryParseError
from rankeval.packages.evaluation_framework.models import ScoringModel

from .base import SearchIndex

logger = logging.getLogger(__name__)

TEXT_FIELD = "text"


class MongoSearchIndex(SearchIndex):
    """Atlas Search over a MongoDB collection of ``{id, text}`` documents."""

    def __init__(self, collection: Collection, batch_size: int = 1000, drop_existing: bool = False):
        """Initialize search index on a collection."""
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.collection = collection
        self.batch_size = batch_size
        self._buffer: List[Dict[str, str]] = []
        self._ingested = 0
        self._committed = False

        if drop_existing:
            logger.info(f"Clearing collection {collection.name}")
            collection.delete_many({})

    def index(self, document_id: str, text: str) -> None:
        if self._committed:
            raise IndexStateError("Cannot add documents after the index was committed")
        self._buffer.append({"id": document_id, TEXT_FIELD: text})
        if len(self._buffer) >= self.batch_size:
            self._flush()

    def _flush(self) -> None:
        if not self._buffer:
            return
        self.collection.insert_many(self._buffer, ordered=True)
        self._ingested += len(self._buffer)
        logger.debug(f"Inserted batch of {len(self._buffer)} documents ({self._ingested} total)")
        self._buffer = []

    def commit(self) -> None:
        if self._committed:
            raise IndexStateError("Index was already committed")
        self._flush()
        self._committed = True
        logger.info(f"Committed {self._ingested} documents to {self.collection.name}")

    def search_index_name(self, model: ScoringModel) -> str:
        return model.search_index or f"default_{model.tag}"

    def _get_pipeline(self, query_text: str, model: ScoringModel, top_k: int) -> List[Dict[str, Any]]:
        """Build the $search aggregation pipeline for one query."""
        return [
            {
                "$search": {
                    "index": self.search_index_name(model),
                    "queryString": {
                        "defaultPath": TEXT_FIELD,
                        "query": query_text
                    }
                }
            },
            {"$limit": top_k},
            {
                "$project": {
                    "_id": 0,
                    "id": 1,
                    "score": {"$meta": "searchScore"}
                }
            }
        ]

    def search(self, query_text: str, model: ScoringModel, top_k: int) -> List[Tuple[str, float]]:
        if not self._committed:
            raise IndexStateError("Index must be committed before searching")

        logger.debug(f"Running Atlas search on index '{self.search_index_name(model)}' "
                     f"for query: '{query_text}' and limit {top_k}")

        pipeline = self._get_pipeline(query_text, model, top_k)
        try:
            results = list(self.collection.aggregate(pipeline))
        except OperationFailure as e:
            logger.error(f"Atlas search failed for query '{query_text}': {e}")
            if "parse" in str(e).lower():
                raise QueryParseError(f"Atlas search could not parse query: {e}", query_text) from e
            raise

        return [(str(doc["id"]), float(doc["score"])) for doc in results]
