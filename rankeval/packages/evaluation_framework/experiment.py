"""
Experiment orchestration: index, retrieve, write and re-read runs, score them.
Also saving, loading, and comparing experiment results.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, List, Sequence, Union

from .dataset import check_files_exist, iter_documents
from .evaluator import DEFAULT_CUTOFFS, NDCGEvaluator
from .models import Experiment, ExperimentConfig, ModelReport, NDCGReport, Query, ScoringModel
from .qrels import QrelsStore
from .retriever import DEFAULT_TOP_K, RetrievalRunner
from .run_file import read_run, write_run

if TYPE_CHECKING:
    from rankeval.packages.search_index.base import SearchIndex

logger = logging.getLogger(__name__)


def build_index(index: "SearchIndex", corpus_files: Iterable[Union[str, Path]]) -> int:
    """Ingest every corpus file (lower-cased text), then commit the index.

    All corpus files are checked before the first document is ingested.
    """
    corpus_files = list(corpus_files)
    check_files_exist(corpus_files, "Corpus")

    count = 0
    for corpus_file in corpus_files:
        logger.info(f"Indexing {corpus_file}")
        for document in iter_documents(corpus_file):
            index.index(document.id, document.text.lower())
            count += 1
    index.commit()
    logger.info(f"Indexing complete: {count} documents")
    return count


def run_path_for(run_dir: Union[str, Path], model: ScoringModel) -> Path:
    return Path(run_dir) / f"{model.tag}.run"


def evaluate_models(
    index: "SearchIndex",
    queries: Sequence[Query],
    qrels: QrelsStore,
    models: Sequence[ScoringModel],
    run_dir: Union[str, Path],
    top_k: int = DEFAULT_TOP_K,
    cutoffs: Sequence[int] = DEFAULT_CUTOFFS,
    workers: int = 1,
) -> List[ModelReport]:
    """Evaluate each scoring model against the shared qrels.

    Each run is written to disk and read back before it is scored.
    """
    tags = [model.tag for model in models]
    if len(tags) != len(set(tags)):
        raise ValueError(f"Scoring model tags must be unique, got {tags}")

    runner = RetrievalRunner(index, workers=workers)
    evaluator = NDCGEvaluator(cutoffs)

    reports: List[ModelReport] = []
    for model in models:
        logger.info(f"Evaluating model '{model.name}' ({model.similarity}, params={model.params})")

        run = runner.run(queries, model, top_k=top_k)
        run_path = write_run(run_path_for(run_dir, model), run)

        reloaded = read_run(run_path)
        report = evaluator.evaluate(reloaded, qrels)

        reports.append(ModelReport(model_name=model.name, run_tag=model.tag, run_path=run_path, report=report))
        logger.info(f"Model '{model.name}': {format_report_line(reports[-1])}")

    return reports


def format_report_line(model_report: ModelReport) -> str:
    """``<model> <mean nDCG@k1> <mean nDCG@k2> ...`` with cutoffs ascending."""
    means = " ".join(f"{model_report.report.mean[k]:.4f}" for k in sorted(model_report.report.mean))
    return f"{model_report.model_name} {means}"


def _report_to_dict(report: NDCGReport) -> Dict:
    return {
        "mean": {str(k): v for k, v in report.mean.items()},
        "per_topic": {
            topic: {str(k): v for k, v in scores.items()}
            for topic, scores in report.per_topic.items()
        },
        "topic_count": report.topic_count,
    }


def _report_from_dict(data: Dict) -> NDCGReport:
    return NDCGReport(
        per_topic={
            topic: {int(k): v for k, v in scores.items()}
            for topic, scores in data["per_topic"].items()
        },
        mean={int(k): v for k, v in data["mean"].items()},
        topic_count=data["topic_count"],
    )


def save_experiment(
    exp_dir: Union[str, Path],
    reports: List[ModelReport],
    config: ExperimentConfig
) -> Path:
    """Save per-model metrics and config to disk."""
    exp_dir = Path(exp_dir)
    logger.info(f"Saving experiment: {config.name} to {exp_dir}")
    exp_dir.mkdir(parents=True, exist_ok=True)

    metrics_path = exp_dir / "metrics.json"
    metrics_dict = {report.model_name: _report_to_dict(report.report) for report in reports}
    with open(metrics_path, 'w', encoding='utf-8') as f:
        json.dump(metrics_dict, f, indent=2)

    logger.info(f"Saved metrics to {metrics_path}")

    config_path = exp_dir / "config.json"
    config_dict = {
        "timestamp": config.timestamp.isoformat(),
        "name": config.name,
        "models": config.models,
        "top_k": config.top_k,
        "cutoffs": config.cutoffs,
        "metadata": config.metadata
    }
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config_dict, f, indent=2)

    logger.info(f"Saved config to {config_path}")
    return exp_dir


def load_experiment(exp_dir: Union[str, Path]) -> Experiment:
    """Load experiment metrics and config from disk."""
    exp_dir = Path(exp_dir)
    logger.info(f"Loading experiment from {exp_dir}")

    if not exp_dir.exists():
        raise FileNotFoundError(f"Experiment directory not found: {exp_dir}")

    with open(exp_dir / "metrics.json", 'r', encoding='utf-8') as f:
        metrics_dict = json.load(f)
    reports = {name: _report_from_dict(data) for name, data in metrics_dict.items()}

    with open(exp_dir / "config.json", 'r', encoding='utf-8') as f:
        config_dict = json.load(f)

    config = ExperimentConfig(
        timestamp=datetime.fromisoformat(config_dict["timestamp"]),
        models=config_dict.get("models", []),
        name=config_dict.get("name") or exp_dir.name,
        top_k=config_dict.get("top_k", DEFAULT_TOP_K),
        cutoffs=config_dict.get("cutoffs", list(DEFAULT_CUTOFFS)),
        metadata=config_dict.get("metadata", {})
    )

    logger.info(f"Experiment {config.name} loaded successfully")
    return Experiment(config=config, reports=reports)


def compare_experiments(exp1: Experiment, exp2: Experiment) -> Dict[str, Dict[int, float]]:
    """Log mean nDCG deltas (exp2 - exp1) for models and cutoffs present in both."""
    logger.info(f"Comparing experiments: {exp1.config.name} vs {exp2.config.name}")

    deltas: Dict[str, Dict[int, float]] = {}

    logger.info("=" * 80)
    logger.info(f"{'Model':<16} {'Metric':<12} {'Exp1':>10} {'Exp2':>10} {'Delta':>12} {'% Change':>12}")
    logger.info("-" * 80)

    for model_name, report1 in exp1.reports.items():
        report2 = exp2.reports.get(model_name)
        if report2 is None:
            logger.warning(f"Model '{model_name}' missing from {exp2.config.name}")
            continue

        deltas[model_name] = {}
        for k in sorted(set(report1.mean) & set(report2.mean)):
            ndcg1 = report1.mean[k]
            ndcg2 = report2.mean[k]
            delta = ndcg2 - ndcg1
            pct = (delta / ndcg1 * 100) if ndcg1 != 0 else 0
            deltas[model_name][k] = delta
            logger.info(
                f"{model_name:<16} {'nDCG@' + str(k):<12} {ndcg1:>10.4f} {ndcg2:>10.4f} {delta:>+12.4f} {pct:>+11.1f}%")

    logger.info("=" * 80)
    return deltas
