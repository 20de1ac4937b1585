"""
Evaluation script for ranking models.

Indexes the corpus, runs every configured scoring model over the queries,
writes and re-reads run files, and reports mean nDCG per model.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv
from pydantic import ValidationError

from rankeval.config import Backend, Config, get_config
from rankeval.packages.evaluation_framework import (
    Experiment,
    ExperimentConfig,
    ModelReport,
    QrelsStore,
    RankevalError,
    build_index,
    check_files_exist,
    compare_experiments,
    evaluate_models,
    format_report_line,
    load_experiment,
    read_queries,
    save_experiment,
)
from rankeval.packages.mongodb_client import MongoDBClient
from rankeval.packages.search_index import MongoSearchIndex, SearchIndex

logger = logging.getLogger(__name__)


def generate_experiment_name() -> str:
    """Generate timestamp-based experiment name."""
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"run_{timestamp}"


def create_index(config: Config) -> SearchIndex:
    """Create an empty search index for the configured backend."""
    if config.backend == Backend.LUCENE:
        # Imported here so the JVM only starts for this backend
        from rankeval.packages.search_index.lucene_index import LuceneIndex

        logger.info(f"Using local Lucene index at {config.index_dir}")
        return LuceneIndex(config.index_dir)
    elif config.backend == Backend.MONGODB:
        mongodb_client_factory = MongoDBClient(
            uri=config.MONGODB_URI,
            username=config.MONGODB_USERNAME,
            password=config.MONGODB_PASSWORD,
        )
        collection = mongodb_client_factory.get_collection(
            config.MONGODB_DATABASE_NAME, config.MONGODB_COLLECTION_NAME)
        logger.info("Using MongoDB Atlas Search index")
        return MongoSearchIndex(collection, drop_existing=True)
    else:
        logger.error(f"Unexpected backend: {config.backend}")
        raise ValueError(f"Unknown backend: {config.backend}")


def display_final_summary(exp_name: str, reports: List[ModelReport], cutoffs: List[int]):
    """Log a summary table of mean nDCG per model."""
    logger.info("=" * 80)
    logger.info(f"EXPERIMENT: {exp_name}")
    logger.info("=" * 80)
    header = " ".join(f"{'nDCG@' + str(k):>10}" for k in cutoffs)
    logger.info(f"{'Model':<16} {header} {'Topics':>8}")
    for model_report in reports:
        values = " ".join(f"{model_report.report.mean[k]:>10.4f}" for k in cutoffs)
        logger.info(f"{model_report.model_name:<16} {values} {model_report.report.topic_count:>8}")
    logger.info("=" * 80)


def run(config: Config) -> List[ModelReport]:
    """Main coordinator function."""
    logger.info("Starting evaluation")
    exp_name = config.experiment_name or generate_experiment_name()

    # Load inputs first so a missing file fails before the index is created
    queries = read_queries(config.queries_file).records
    qrels = QrelsStore.load(config.qrels_file)
    check_files_exist(config.corpus_files, "Corpus")

    index = create_index(config)
    build_index(index, config.corpus_files)

    reports = evaluate_models(
        index,
        queries,
        qrels,
        config.models,
        run_dir=config.run_dir,
        top_k=config.top_k,
        cutoffs=config.cutoffs,
        workers=config.workers,
    )

    for model_report in reports:
        print(format_report_line(model_report))

    display_final_summary(exp_name, reports, config.cutoffs)

    experiment_config = ExperimentConfig(
        timestamp=datetime.now(timezone.utc),
        models=[model.model_dump() for model in config.models],
        name=exp_name,
        top_k=config.top_k,
        cutoffs=list(config.cutoffs),
        metadata={
            "backend": config.backend.value,
            "query_count": len(queries),
            "qrels_count": len(qrels),
            "corpus_files": [str(p) for p in config.corpus_files],
        },
    )

    if config.save:
        exp_dir = save_experiment(Path(config.run_dir) / "experiments" / exp_name, reports, experiment_config)
        logger.info(f"Saved to: {exp_dir}")
    else:
        logger.info("Skipping save (use --save to save results)")

    if config.compare is not None:
        baseline = load_experiment(config.compare)
        current = Experiment(
            config=experiment_config,
            reports={r.model_name: r.report for r in reports},
        )
        compare_experiments(baseline, current)

    logger.info("Evaluation complete")
    return reports


def main(argv: Optional[Sequence[str]] = None) -> int:
    # Load .env.local from the working directory for local development
    env_local_path = Path('.env.local')
    if env_local_path.exists():
        load_dotenv(env_local_path)

    try:
        config = get_config(argv)
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        run(config)
    except (FileNotFoundError, RankevalError) as e:
        logger.error(f"Evaluation failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
