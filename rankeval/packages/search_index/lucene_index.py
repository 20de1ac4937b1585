"""
Local Lucene index backed by Pyserini.

Documents are written with Pyserini's ``LuceneIndexer`` (Lucene English
analyzer: stop words plus Porter stemming). Queries go through Lucene's
classic ``QueryParser`` with the same analyzer, and each scoring model gets
its own ``LuceneSearcher`` configured with the matching Lucene similarity.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Dict, List, Tuple, Union

from jnius import JavaException
from pyserini.analysis import get_lucene_analyzer
from pyserini.index.lucene import LuceneIndexer
from pyserini.pyclass import autoclass
from pyserini.search.lucene import LuceneSearcher

from rankeval.packages.evaluation_framework.errors import IndexStateError, QueryParseError
from rankeval.packages.evaluation_framework.models import ScoringModel

from .base import SearchIndex

logger = logging.getLogger(__name__)

JQueryParser = autoclass("org.apache.lucene.queryparser.classic.QueryParser")

# Field Pyserini stores analyzed document text in.
CONTENTS_FIELD = "contents"


def _set_bm25(searcher: LuceneSearcher, params: Dict[str, float]) -> None:
    k1 = params.get("k1", 1.2)
    b = params.get("b", 0.75)
    if k1 < 0:
        raise ValueError(f"BM25 k1 must be >= 0, got {k1}")
    if not 0 <= b <= 1:
        raise ValueError(f"BM25 b must be in [0, 1], got {b}")
    searcher.set_bm25(k1=k1, b=b)


def _set_lm_dirichlet(searcher: LuceneSearcher, params: Dict[str, float]) -> None:
    mu = params.get("mu", 2000.0)
    if mu <= 0:
        raise ValueError(f"mu must be > 0, got {mu}")
    searcher.set_qld(mu=mu)


SIMILARITY_MAP: Dict[str, Callable[[LuceneSearcher, Dict[str, float]], None]] = {
    "bm25": _set_bm25,
    "lm_dirichlet": _set_lm_dirichlet,
}


class LuceneIndex(SearchIndex):
    """On-disk Lucene index; ingestion happens once, then it is read-only."""

    def __init__(self, index_dir: Union[str, Path]):
        self.index_dir = Path(index_dir)
        self._indexer = None
        self._committed = False
        self._document_count = 0
        self._searchers: Dict[Tuple, LuceneSearcher] = {}
        self._lock = threading.Lock()

    def index(self, document_id: str, text: str) -> None:
        if self._committed:
            raise IndexStateError("Cannot add documents after the index was committed")
        if self._indexer is None:
            self._open_indexer()
        self._indexer.add_doc_dict({"id": document_id, CONTENTS_FIELD: text})
        self._document_count += 1

    def commit(self) -> None:
        if self._committed:
            raise IndexStateError("Index was already committed")
        if self._indexer is None:
            self._open_indexer()
        self._indexer.close()
        self._indexer = None
        self._committed = True
        logger.info(f"Committed Lucene index at {self.index_dir}: {self._document_count} documents")

    def __len__(self) -> int:
        return self._document_count

    def search(self, query_text: str, model: ScoringModel, top_k: int) -> List[Tuple[str, float]]:
        if not self._committed:
            raise IndexStateError("Index must be committed before searching")
        if not query_text.strip():
            return []

        # JNI calls are serialized; QueryParser instances are not thread-safe.
        with self._lock:
            searcher = self._searcher(model)
            parser = JQueryParser(CONTENTS_FIELD, get_lucene_analyzer())
            try:
                query = parser.parse(query_text)
            except JavaException as e:
                raise QueryParseError(str(e), query_text) from e
            hits = searcher.search(query, k=top_k)

        return [(hit.docid, float(hit.score)) for hit in hits]

    def _open_indexer(self) -> None:
        self.index_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Creating Lucene index at {self.index_dir}")
        # Single thread keeps Lucene doc ids in ingestion order.
        self._indexer = LuceneIndexer(str(self.index_dir), threads=1)

    def _searcher(self, model: ScoringModel) -> LuceneSearcher:
        key = (model.similarity, tuple(sorted(model.params.items())))
        searcher = self._searchers.get(key)
        if searcher is None:
            configure = SIMILARITY_MAP.get(model.similarity)
            if configure is None:
                raise ValueError(f"Unknown similarity '{model.similarity}'. "
                                 f"Available: {list(SIMILARITY_MAP.keys())}")
            searcher = LuceneSearcher(str(self.index_dir))
            configure(searcher, model.params)
            logger.debug(f"Opened searcher for similarity '{model.similarity}' with params {model.params}")
            self._searchers[key] = searcher
        return searcher
