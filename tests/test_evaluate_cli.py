import pytest

from rankeval.evaluation import evaluate
from rankeval.evaluation.evaluate import main

from conftest import CANNED_HITS, CannedIndex


@pytest.fixture
def created_indexes(monkeypatch):
    created = []

    def fake_create_index(config):
        index = CannedIndex(CANNED_HITS)
        created.append(index)
        return index

    monkeypatch.setattr(evaluate, "create_index", fake_create_index)
    return created


def cli_args(tmp_path, corpus_file, queries_file, qrels_file, *extra):
    return ["--corpus", str(corpus_file), "--queries", str(queries_file), "--qrels", str(qrels_file),
            "--run-dir", str(tmp_path / "runs"), *extra]


def test_reports_one_line_per_model(tmp_path, corpus_file, queries_file, qrels_file, capsys, created_indexes):
    assert main(cli_args(tmp_path, corpus_file, queries_file, qrels_file)) == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert lines == ["BM25 1.0000 1.0000", "LMDirichlet 1.0000 1.0000"]
    assert (tmp_path / "runs" / "bm25.run").exists()
    assert (tmp_path / "runs" / "lmd.run").exists()
    assert len(created_indexes[0].documents) == 4


def test_save_and_compare(tmp_path, corpus_file, queries_file, qrels_file, created_indexes):
    args = cli_args(tmp_path, corpus_file, queries_file, qrels_file)
    assert main(args + ["--name", "baseline", "--save"]) == 0
    exp_dir = tmp_path / "runs" / "experiments" / "baseline"
    assert (exp_dir / "metrics.json").exists()

    assert main(args + ["--compare", str(exp_dir)]) == 0


def test_missing_qrels_fails(tmp_path, corpus_file, queries_file, created_indexes):
    assert main(cli_args(tmp_path, corpus_file, queries_file, tmp_path / "missing.tsv")) == 1
    assert created_indexes == []


def test_missing_corpus_part_fails_before_index_is_created(tmp_path, corpus_file, queries_file, qrels_file,
                                                           created_indexes):
    args = cli_args(tmp_path, corpus_file, queries_file, qrels_file)
    args[2:2] = [str(tmp_path / "part2.jsonl")]
    assert main(args) == 1
    assert created_indexes == []


def test_invalid_configuration_fails(tmp_path, corpus_file, queries_file, qrels_file):
    assert main(cli_args(tmp_path, corpus_file, queries_file, qrels_file, "--top-k", "0")) == 2
