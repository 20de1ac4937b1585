"""
Relevance judgments (qrels) keyed by topic and document.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Union

from .models import ParseDiagnostic, QrelEntry

logger = logging.getLogger(__name__)

HEADER_TOKENS = frozenset({
    "topic", "topicid", "topic_id", "topic-id",
    "query-id", "query_id", "queryid", "qid",
})


def parse_qrels_lines(lines: Iterable[str], path: str = "<qrels>") -> Iterator[Union[QrelEntry, ParseDiagnostic]]:
    """Lazily parse TSV judgment lines.

    Blank lines, ``#`` comments and header lines are dropped without a
    diagnostic. Lines with fewer than 3 fields or a relevance that is not a
    non-negative integer yield a ``ParseDiagnostic``.
    """
    for line_num, raw in enumerate(lines, 1):
        line = raw.rstrip("\r\n")
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        parts = [part.strip() for part in line.split("\t")]
        if parts[0].lower() in HEADER_TOKENS:
            continue

        if len(parts) < 3:
            yield ParseDiagnostic(path, line_num, line, f"expected 3 tab-separated fields, got {len(parts)}")
            continue

        topic_id, document_id, relevance_field = parts[0], parts[1], parts[2]
        try:
            relevance = int(relevance_field)
        except ValueError:
            yield ParseDiagnostic(path, line_num, line, f"relevance is not an integer: {relevance_field!r}")
            continue

        if relevance < 0:
            yield ParseDiagnostic(path, line_num, line, f"relevance must be >= 0, got {relevance}")
            continue

        yield QrelEntry(topic_id=topic_id, document_id=document_id, relevance=relevance)


class QrelsStore:
    """Ground truth: graded relevance per (topic, document).

    A later judgment for the same pair replaces an earlier one. Pairs without
    a judgment have relevance 0.
    """

    def __init__(self, diagnostics: Optional[List[ParseDiagnostic]] = None):
        self._judgments: Dict[str, Dict[str, int]] = {}
        self.diagnostics: List[ParseDiagnostic] = diagnostics or []

    def add(self, entry: QrelEntry) -> None:
        self._judgments.setdefault(entry.topic_id, {})[entry.document_id] = entry.relevance

    @classmethod
    def from_entries(cls, entries: Iterable[QrelEntry]) -> "QrelsStore":
        store = cls()
        for entry in entries:
            store.add(entry)
        return store

    @classmethod
    def load(cls, path: Union[str, Path]) -> "QrelsStore":
        """Load judgments from a TSV file."""
        logger.info(f"Loading qrels from {path}")

        path_obj = Path(path)
        if not path_obj.exists():
            logger.error(f"Qrels file not found: {path}")
            raise FileNotFoundError(f"Qrels file not found: {path}")

        store = cls()
        with open(path_obj, 'r', encoding='utf-8') as f:
            for item in parse_qrels_lines(f, str(path)):
                if isinstance(item, ParseDiagnostic):
                    logger.warning(f"Skipping malformed qrels line {item}")
                    store.diagnostics.append(item)
                else:
                    store.add(item)

        logger.info(f"Loaded {len(store)} judgments for {len(store.topics())} topics "
                    f"({len(store.diagnostics)} lines skipped)")
        return store

    def relevance(self, topic_id: str, document_id: str) -> int:
        return self._judgments.get(topic_id, {}).get(document_id, 0)

    def judgments(self, topic_id: str) -> Dict[str, int]:
        """Copy of the judgments for one topic."""
        return dict(self._judgments.get(topic_id, {}))

    def topics(self) -> List[str]:
        return list(self._judgments.keys())

    def __len__(self) -> int:
        return sum(len(docs) for docs in self._judgments.values())
