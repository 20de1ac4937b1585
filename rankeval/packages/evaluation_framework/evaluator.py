"""
Evaluator for computing graded nDCG over a run.
"""

import logging
import math
from typing import Dict, List, Sequence

from .errors import RunIntegrityError
from .models import NDCGReport, RunRecord, Run
from .qrels import QrelsStore

logger = logging.getLogger(__name__)

DEFAULT_CUTOFFS = (10, 100)


def dcg(rels: Sequence[int], k: int) -> float:
    """DCG@k with exponential gain: sum of (2^rel - 1) / log2(i + 2), i 0-based."""
    total = 0.0
    for i, rel in enumerate(rels[:k]):
        total += (2 ** rel - 1) / math.log2(i + 2)
    return total


def compute_ndcg(rels: Sequence[int], k: int) -> float:
    """nDCG@k of a relevance sequence in retrieved order.

    The ideal ordering is the same sequence sorted by descending relevance.
    Returns 0 when the ideal DCG is 0.
    """
    idcg = dcg(sorted(rels, reverse=True), k)
    if idcg == 0:
        return 0.0
    return dcg(rels, k) / idcg


def sort_topic_records(topic_id: str, records: List[RunRecord]) -> List[RunRecord]:
    """Order a topic's records by stored rank, rejecting duplicate ranks."""
    ordered = sorted(records, key=lambda r: r.rank)

    for prev, curr in zip(ordered, ordered[1:]):
        if prev.rank == curr.rank:
            raise RunIntegrityError(
                f"Topic '{topic_id}' has duplicate rank {curr.rank} "
                f"('{prev.document_id}' and '{curr.document_id}')")

    if ordered and (ordered[0].rank != 1 or ordered[-1].rank != len(ordered)):
        logger.warning(f"Topic '{topic_id}' ranks are not contiguous from 1 "
                       f"(first={ordered[0].rank}, last={ordered[-1].rank}, count={len(ordered)})")

    return ordered


class NDCGEvaluator:
    """Scores a run against relevance judgments."""

    def __init__(self, ks: Sequence[int] = DEFAULT_CUTOFFS):
        if not ks:
            raise ValueError("At least one nDCG cutoff is required")
        for k in ks:
            if k < 1:
                raise ValueError(f"nDCG cutoff must be >= 1, got {k}")
        self.ks: List[int] = sorted(set(ks))
        logger.info(f"Evaluator initialized with ks={self.ks}")

    def relevance_sequence(self, topic_id: str, records: List[RunRecord], qrels: QrelsStore) -> List[int]:
        """Relevance grades in rank order; unjudged documents count as 0."""
        ordered = sort_topic_records(topic_id, records)
        return [qrels.relevance(topic_id, record.document_id) for record in ordered]

    def evaluate(self, run: Run, qrels: QrelsStore) -> NDCGReport:
        """Per-topic and mean nDCG over the topics present in the run."""
        grouped = run.by_topic()
        logger.info(f"Starting evaluation of run '{run.tag}' over {len(grouped)} topics")

        per_topic: Dict[str, Dict[int, float]] = {}
        for topic_id, records in grouped.items():
            # A topic with no records was never retrieved; it does not count as 0.
            if not records:
                continue

            rels = self.relevance_sequence(topic_id, records, qrels)
            per_topic[topic_id] = {k: compute_ndcg(rels, k) for k in self.ks}
            logger.debug(f"Topic '{topic_id}': {per_topic[topic_id]}")

        unjudged = [t for t in per_topic if not qrels.judgments(t)]
        if unjudged:
            logger.warning(f"{len(unjudged)} run topics have no judgments and score 0: {unjudged[:10]}")

        if not per_topic:
            logger.warning(f"Run '{run.tag}' has no topics; mean nDCG reported as 0")

        mean = {
            k: self._mean([scores[k] for scores in per_topic.values()])
            for k in self.ks
        }

        logger.info(f"Evaluation of run '{run.tag}' complete")
        return NDCGReport(per_topic=per_topic, mean=mean, topic_count=len(per_topic))

    def _mean(self, values: List[float]) -> float:
        """Calculate mean of values."""
        if len(values) == 0:
            return 0.0
        return sum(values) / len(values)
