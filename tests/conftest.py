"""
Shared pytest fixtures for rankeval tests.
"""

import json
import sys
from pathlib import Path
from typing import List, Tuple

import pytest

# Add project root to Python path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from rankeval.packages.evaluation_framework import QueryParseError  # noqa: E402
from rankeval.packages.search_index import SearchIndex  # noqa: E402

CORPUS = [
    {"_id": "d1", "text": "The quick brown fox jumps over the lazy dog"},
    {"_id": "d2", "text": "A fox in the forest"},
    {"_id": "d3", "text": "Dogs are loyal animals"},
    {"_id": "d4", "text": "Stock markets rallied on Monday"},
]

QUERIES = [
    {"_id": "q1", "text": "fox"},
    {"_id": "q2", "text": "Dogs (loyal)?"},
    {"_id": "q3", "text": "unicorn"},
]

QRELS = [
    "query-id\tcorpus-id\tscore",
    "q1\td2\t2",
    "q1\td1\t1",
    "q2\td3\t2",
    "q4\td4\t1",
]

# Hits per lower-cased, escaped query text.
CANNED_HITS = {
    "fox": [("d2", 2.1), ("d1", 1.3)],
    "dogs \\(loyal\\)\\?": [("d3", 2.4), ("d1", 0.8)],
}


class CannedIndex(SearchIndex):
    """Returns fixed hits per query text and records what it was asked."""

    def __init__(self, hits, fail_on=None):
        self.hits = hits
        self.fail_on = fail_on
        self.documents: List[Tuple[str, str]] = []
        self.committed = False
        self.calls: List[Tuple[str, str, int]] = []

    def index(self, document_id, text):
        self.documents.append((document_id, text))

    def commit(self):
        self.committed = True

    def search(self, query_text, model, top_k):
        self.calls.append((query_text, model.tag, top_k))
        if self.fail_on is not None and self.fail_on in query_text:
            raise QueryParseError("bad syntax", query_text)
        return self.hits.get(query_text, [])[:top_k]


def write_lines(path: Path, lines) -> Path:
    path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return path


@pytest.fixture
def corpus_file(tmp_path):
    return write_lines(tmp_path / "corpus.jsonl", [json.dumps(doc) for doc in CORPUS])


@pytest.fixture
def queries_file(tmp_path):
    return write_lines(tmp_path / "queries.jsonl", [json.dumps(q) for q in QUERIES])


@pytest.fixture
def qrels_file(tmp_path):
    return write_lines(tmp_path / "test.tsv", QRELS)


@pytest.fixture
def canned_index():
    return CannedIndex(CANNED_HITS)
