import pytest

from rankeval.packages.evaluation_framework import QrelEntry, QrelsStore
from rankeval.packages.evaluation_framework.qrels import parse_qrels_lines

from conftest import write_lines


def test_last_judgment_wins(tmp_path):
    path = write_lines(tmp_path / "qrels.tsv", ["t1\td1\t1", "t1\td1\t3"])
    store = QrelsStore.load(path)
    assert store.relevance("t1", "d1") == 3
    assert len(store) == 1
    assert store.diagnostics == []


def test_unjudged_pairs_are_zero(qrels_file):
    store = QrelsStore.load(qrels_file)
    assert store.relevance("q1", "d2") == 2
    assert store.relevance("q1", "d3") == 0
    assert store.relevance("missing-topic", "d1") == 0


def test_header_comments_and_blank_lines_are_skipped_silently(tmp_path):
    path = write_lines(tmp_path / "qrels.tsv", [
        "Topic\tdoc\trel",
        "",
        "# judged by assessor 2",
        "t1\td1\t2",
    ])
    store = QrelsStore.load(path)
    assert store.topics() == ["t1"]
    assert store.diagnostics == []


def test_malformed_lines_are_skipped_with_diagnostics(tmp_path):
    path = write_lines(tmp_path / "qrels.tsv", [
        "t1\td1",
        "t1\td2\thigh",
        "t1\td3\t-1",
        "t1\td4\t1\textra",
    ])
    store = QrelsStore.load(path)

    assert store.judgments("t1") == {"d4": 1}
    assert [d.line_number for d in store.diagnostics] == [1, 2, 3]
    assert "integer" in store.diagnostics[1].reason


def test_missing_file_is_fatal(tmp_path):
    with pytest.raises(FileNotFoundError):
        QrelsStore.load(tmp_path / "nope.tsv")


def test_parse_is_lazy_and_yields_entries():
    items = parse_qrels_lines(iter(["t1\td1\t1\n", "bad\n"]))
    assert next(items) == QrelEntry("t1", "d1", 1)
    assert next(items).reason.startswith("expected 3")


def test_from_entries():
    store = QrelsStore.from_entries([QrelEntry("t1", "d1", 1), QrelEntry("t2", "d9", 0)])
    assert store.relevance("t2", "d9") == 0
    assert sorted(store.topics()) == ["t1", "t2"]
