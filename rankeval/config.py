"""
Configuration management for evaluation settings and command-line arguments.
"""

import argparse
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rankeval.packages.evaluation_framework.models import DEFAULT_MODELS, ScoringModel


class Backend(str, Enum):
    LUCENE = "lucene"
    MONGODB = "mongodb"


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RANKEVAL_")

    corpus_files: List[Path] = Field(default_factory=lambda: [Path("corpus.jsonl")],
                                     description="JSONL corpus files with '_id' and 'text'")
    queries_file: Path = Field(Path("queries.jsonl"), description="JSONL query file with '_id' and 'text'")
    qrels_file: Path = Field(Path("test.tsv"), description="TSV relevance judgments")
    run_dir: Path = Field(Path("runs"), description="Directory for run files and saved experiments")
    index_dir: Path = Field(Path("indexes/lucene"), description="Directory for the local Lucene index")
    top_k: int = Field(100, ge=1, description="Number of hits retrieved per query")
    cutoffs: List[int] = Field(default_factory=lambda: [10, 100], description="nDCG cutoffs")
    workers: int = Field(1, ge=1, description="Parallel queries per scoring model")
    backend: Backend = Field(
        Backend.LUCENE,
        description=f"Search index backend, allowed: {[b.value for b in Backend]}"
    )
    models: List[ScoringModel] = Field(default_factory=lambda: list(DEFAULT_MODELS),
                                       description="Scoring models to evaluate")
    experiment_name: Optional[str] = Field(default=None, description="Experiment name (default: timestamp)")
    save: bool = Field(False, description="Save experiment metrics under run_dir/experiments")
    compare: Optional[Path] = Field(default=None, description="Saved experiment directory to compare against")
    log_level: str = Field('INFO', description="Logging level",
                           examples=["CRITICAL", "FATAL", "ERROR", "WARNING", "INFO", "DEBUG"])
    MONGODB_DATABASE_NAME: str = Field(default="rankeval", alias="MONGODB_DATABASE_NAME",
                                       description="MongoDB database name")
    MONGODB_COLLECTION_NAME: str = Field(default="corpus", alias="MONGODB_COLLECTION_NAME",
                                         description="MongoDB collection name")
    MONGODB_USERNAME: Optional[str] = Field(default=None, alias="MONGODB_USERNAME", description="Mongodb user")
    MONGODB_PASSWORD: Optional[str] = Field(default=None, alias="MONGODB_PASSWORD",
                                            description="Mongodb password")
    MONGODB_URI: Optional[str] = Field(
        default=None, alias="MONGODB_URI",
        description="Mongodb uri. Example: mongodb+srv://cluster.mongodb.net/?appName=rankeval")

    @field_validator("cutoffs")
    def positive_cutoffs(cls, v):
        if not v:
            raise ValueError("At least one nDCG cutoff is required")
        if any(k < 1 for k in v):
            raise ValueError(f"nDCG cutoffs must be >= 1, got {v}")
        return sorted(set(v))

    @field_validator("models")
    def unique_model_tags(cls, v):
        if not v:
            raise ValueError("At least one scoring model is required")
        tags = [model.tag for model in v]
        if len(tags) != len(set(tags)):
            raise ValueError(f"Scoring model tags must be unique, got {tags}")
        return v

    @model_validator(mode="after")
    def mongodb_settings_present(self):
        if self.backend == Backend.MONGODB and not self.MONGODB_URI:
            raise ValueError("MONGODB_URI is required for the mongodb backend")
        return self


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Evaluate ranking models with nDCG")

    parser.add_argument(
        "--corpus",
        dest="corpus_files",
        nargs="+",
        help="Corpus JSONL file(s) (env: RANKEVAL_CORPUS_FILES as JSON list)",
    )
    parser.add_argument("--queries", dest="queries_file", help="Query JSONL file")
    parser.add_argument("--qrels", dest="qrels_file", help="Relevance judgments TSV file")
    parser.add_argument("--run-dir", dest="run_dir", help="Directory for run files (default: runs)")
    parser.add_argument("--index-dir", dest="index_dir", help="Lucene index directory (default: indexes/lucene)")
    parser.add_argument("--top-k", dest="top_k", type=int, help="Hits per query (default: 100)")
    parser.add_argument("--cutoffs", nargs="+", type=int, help="nDCG cutoffs (default: 10 100)")
    parser.add_argument("--workers", type=int, help="Parallel queries per model (default: 1)")
    parser.add_argument(
        "--backend",
        choices=[b.value for b in Backend],
        help="Search index backend (default: lucene)",
    )
    parser.add_argument("--name", dest="experiment_name", help="Experiment name (default: timestamp)")
    parser.add_argument(
        "--save",
        action="store_true",
        default=None,
        help="Save the experiment metrics (default: False)",
    )
    parser.add_argument("--compare", help="Saved experiment directory to compare against")
    parser.add_argument("--log-level", dest="log_level", help="Logging level")

    return parser.parse_args(argv)


def get_config(argv: Optional[Sequence[str]] = None) -> Config:
    args = parse_args(argv)
    # Only include CLI values that are actually set
    cli_overrides = {k: v for k, v in vars(args).items() if v is not None}
    return Config(**cli_overrides)
