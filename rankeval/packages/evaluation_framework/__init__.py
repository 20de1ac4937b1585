"""
Evaluation Framework for Ranked Retrieval

File-based pipeline: queries are run through a search index under several
scoring models, each run is persisted as a TREC run file, then re-read and
scored with graded nDCG against TSV relevance judgments.
"""

from .dataset import JsonlLoad, check_files_exist, iter_documents, read_documents, read_queries
from .errors import IndexStateError, QueryParseError, RankevalError, RunFormatError, RunIntegrityError
from .evaluator import NDCGEvaluator, compute_ndcg, dcg
from .experiment import (
    build_index,
    compare_experiments,
    evaluate_models,
    format_report_line,
    load_experiment,
    save_experiment,
)
from .models import (
    DEFAULT_MODELS,
    Document,
    Experiment,
    ExperimentConfig,
    ModelReport,
    NDCGReport,
    ParseDiagnostic,
    QrelEntry,
    Query,
    Run,
    RunRecord,
    ScoredHit,
    ScoringModel,
)
from .qrels import QrelsStore
from .retriever import RetrievalRunner
from .run_file import format_run_line, read_run, write_run

__all__ = [
    "Query",
    "Document",
    "ScoredHit",
    "RunRecord",
    "QrelEntry",
    "ParseDiagnostic",
    "Run",
    "NDCGReport",
    "ModelReport",
    "ScoringModel",
    "DEFAULT_MODELS",
    "ExperimentConfig",
    "Experiment",
    "RankevalError",
    "QueryParseError",
    "RunFormatError",
    "RunIntegrityError",
    "IndexStateError",
    "JsonlLoad",
    "read_documents",
    "check_files_exist",
    "iter_documents",
    "read_queries",
    "QrelsStore",
    "format_run_line",
    "write_run",
    "read_run",
    "RetrievalRunner",
    "NDCGEvaluator",
    "dcg",
    "compute_ndcg",
    "build_index",
    "evaluate_models",
    "format_report_line",
    "save_experiment",
    "load_experiment",
    "compare_experiments",
]
