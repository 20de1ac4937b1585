"""
Retrieval runner: turns queries into a ranked run through a search index.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, List, Sequence

from .errors import QueryParseError
from .models import Query, Run, ScoredHit, ScoringModel

if TYPE_CHECKING:
    from rankeval.packages.search_index.base import SearchIndex

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 100


class RetrievalRunner:
    """Runs every query against one scoring model and collects ranked hits."""

    def __init__(self, index: "SearchIndex", workers: int = 1):
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self.index = index
        self.workers = workers

    def retrieve(self, query: Query, model: ScoringModel, top_k: int = DEFAULT_TOP_K) -> List[ScoredHit]:
        """Search one query; ranks follow the index's order, starting at 1."""
        query_text = self.index.escape(query.text.lower())
        try:
            hits = self.index.search(query_text, model, top_k)
        except QueryParseError as e:
            logger.error(f"Query '{query.id}' failed to parse after escaping: {e}")
            e.query_id = query.id
            raise

        scored = [
            ScoredHit(document_id=document_id, rank=rank, score=score)
            for rank, (document_id, score) in enumerate(hits[:top_k], start=1)
        ]
        logger.debug(f"Retrieved {len(scored)} documents for query '{query.id}'")
        return scored

    def run(self, queries: Sequence[Query], model: ScoringModel, top_k: int = DEFAULT_TOP_K) -> Run:
        """Retrieve up to top_k hits per query. A parse failure aborts the run."""
        if top_k < 1:
            raise ValueError(f"top_k must be >= 1, got {top_k}")

        logger.info(f"Starting retrieval for {len(queries)} queries with model '{model.name}', "
                    f"top_k={top_k}, workers={self.workers}")

        if self.workers == 1:
            results = [self.retrieve(query, model, top_k) for query in queries]
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                results = list(executor.map(lambda q: self.retrieve(q, model, top_k), queries))

        run = Run.from_hits(model.tag, zip(queries, results))

        empty = sum(1 for hits in results if not hits)
        if empty:
            logger.warning(f"{empty} of {len(queries)} queries returned no documents for model '{model.name}'")

        logger.info(f"Retrieval complete for model '{model.name}': {len(run)} hits")
        return run
