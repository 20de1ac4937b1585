"""
Data models for the evaluation framework.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


@dataclass(frozen=True)
class Query:
    """Single evaluation topic: id plus free-text query."""
    id: str
    text: str


@dataclass(frozen=True)
class Document:
    """Corpus document as read from the JSONL corpus."""
    id: str
    text: str


@dataclass(frozen=True)
class ScoredHit:
    """One ranked search result for a query under one scoring model."""
    document_id: str
    rank: int  # 1-based
    score: float


@dataclass(frozen=True)
class RunRecord:
    """Persisted unit of a run: one line of a run file."""
    topic_id: str
    document_id: str
    rank: int
    score: float
    run_tag: str


@dataclass(frozen=True)
class QrelEntry:
    """Graded relevance judgment for a (topic, document) pair."""
    topic_id: str
    document_id: str
    relevance: int


@dataclass(frozen=True)
class ParseDiagnostic:
    """A skipped input record and why it was skipped."""
    path: str
    line_number: int
    line: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path}:{self.line_number}: {self.reason}: {self.line!r}"


@dataclass
class Run:
    """Ranked result lists of one retrieval configuration.

    Records keep the order they were produced (or read) in; consumers must
    not rely on that order for ranking.
    """
    tag: str
    records: List[RunRecord] = field(default_factory=list)

    @classmethod
    def from_hits(cls, tag: str, results: Iterable[Tuple["Query", List["ScoredHit"]]]) -> "Run":
        """Build a run from per-query hit lists, keeping hit order."""
        run = cls(tag=tag)
        for query, hits in results:
            for hit in hits:
                run.records.append(RunRecord(
                    topic_id=query.id,
                    document_id=hit.document_id,
                    rank=hit.rank,
                    score=hit.score,
                    run_tag=tag,
                ))
        return run

    def by_topic(self) -> Dict[str, List[RunRecord]]:
        """Group records by topic id. Lists are in storage order, not rank order."""
        grouped: Dict[str, List[RunRecord]] = defaultdict(list)
        for record in self.records:
            grouped[record.topic_id].append(record)
        return dict(grouped)

    def topics(self) -> List[str]:
        return list(self.by_topic().keys())

    def __len__(self) -> int:
        return len(self.records)


@dataclass
class NDCGReport:
    """nDCG scores of one run."""
    per_topic: Dict[str, Dict[int, float]]  # {"t1": {10: 0.83, 100: 0.85}}
    mean: Dict[int, float]
    topic_count: int


@dataclass
class ModelReport:
    """Evaluation outcome for one scoring model."""
    model_name: str
    run_tag: str
    run_path: Path
    report: NDCGReport


class ScoringModel(BaseModel):
    """Named ranking function, passed as an opaque handle to the search index."""
    name: str = Field(description="Display name used in reports, e.g. 'BM25'")
    tag: str = Field(description="Run tag and run file stem, e.g. 'bm25'")
    similarity: str = Field(description="Similarity identifier understood by the index, e.g. 'bm25'")
    params: Dict[str, float] = Field(default_factory=dict,
                                     description="Similarity parameters, e.g. {'k1': 1.2, 'b': 0.75}")
    search_index: Optional[str] = Field(default=None,
                                        description="Backend index name (Atlas Search index for the MongoDB backend)")

    @field_validator("tag")
    def tag_is_single_token(cls, v):
        if not v or any(ch.isspace() for ch in v):
            raise ValueError(f"Run tag must be a single non-empty token, got {v!r}")
        return v


DEFAULT_MODELS: List[ScoringModel] = [
    ScoringModel(name="BM25", tag="bm25", similarity="bm25"),
    ScoringModel(name="LMDirichlet", tag="lmd", similarity="lm_dirichlet"),
]


@dataclass
class ExperimentConfig:
    """Configuration for an experiment run."""
    timestamp: datetime
    models: List[Dict[str, Any]]
    name: str = ""
    top_k: int = 100
    cutoffs: List[int] = field(default_factory=lambda: [10, 100])
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Experiment:
    """Container for a saved experiment: config plus per-model nDCG."""
    config: ExperimentConfig
    reports: Dict[str, NDCGReport]  # keyed by model name
