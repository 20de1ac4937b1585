from pathlib import Path

import pytest
from pydantic import ValidationError

from rankeval.config import Backend, Config, get_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("MONGODB_URI", "MONGODB_USERNAME", "MONGODB_PASSWORD",
                 "RANKEVAL_BACKEND", "RANKEVAL_TOP_K", "RANKEVAL_MODELS", "RANKEVAL_CUTOFFS"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = Config()
    assert config.backend == Backend.LUCENE
    assert config.top_k == 100
    assert config.index_dir == Path("indexes/lucene")
    assert config.cutoffs == [10, 100]
    assert [m.tag for m in config.models] == ["bm25", "lmd"]


def test_cli_overrides():
    config = get_config(["--corpus", "a.jsonl", "b.jsonl", "--top-k", "5", "--cutoffs", "100", "10", "5",
                         "--queries", "q.jsonl", "--save", "--index-dir", "idx"])
    assert config.index_dir == Path("idx")
    assert config.corpus_files == [Path("a.jsonl"), Path("b.jsonl")]
    assert config.queries_file == Path("q.jsonl")
    assert config.top_k == 5
    assert config.cutoffs == [5, 10, 100]
    assert config.save is True


def test_environment_models(monkeypatch):
    monkeypatch.setenv("RANKEVAL_MODELS",
                       '[{"name": "LMD-1000", "tag": "lmd1000", "similarity": "lm_dirichlet", "params": {"mu": 1000}}]')
    config = Config()
    assert config.models[0].params == {"mu": 1000.0}


def test_mongodb_backend_requires_uri():
    with pytest.raises(ValidationError):
        Config(backend="mongodb")


def test_mongodb_backend_reads_uri_from_environment(monkeypatch):
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017")
    assert Config(backend="mongodb").MONGODB_URI == "mongodb://localhost:27017"


@pytest.mark.parametrize("overrides", [{"top_k": 0}, {"cutoffs": [0]}, {"workers": 0}])
def test_invalid_values(overrides):
    with pytest.raises(ValidationError):
        Config(**overrides)
