import pytest

from rankeval.packages.evaluation_framework import (
    DEFAULT_MODELS,
    Query,
    QueryParseError,
    RetrievalRunner,
    ScoringModel,
)
from rankeval.packages.search_index import escape_query

from conftest import CannedIndex

BM25 = DEFAULT_MODELS[0]


def test_ranks_follow_index_order_without_resorting():
    index = CannedIndex({"fox": [("d2", 1.0), ("d1", 1.0), ("d3", 3.0)]})
    run = RetrievalRunner(index).run([Query("q1", "fox")], BM25)

    assert [(r.document_id, r.rank) for r in run.records] == [("d2", 1), ("d1", 2), ("d3", 3)]
    assert all(r.run_tag == "bm25" for r in run.records)


def test_query_text_is_lowercased_and_escaped():
    index = CannedIndex({})
    RetrievalRunner(index).run([Query("q1", "What is C++ (Lang)?")], BM25, top_k=5)
    assert index.calls == [("what is c\\+\\+ \\(lang\\)\\?", "bm25", 5)]


def test_fewer_hits_than_top_k_are_not_padded():
    index = CannedIndex({"a": [("d1", 2.0)]})
    run = RetrievalRunner(index).run([Query("q1", "a"), Query("q2", "b")], BM25, top_k=10)
    assert [r.topic_id for r in run.records] == ["q1"]


def test_ranks_are_one_to_n_per_topic():
    hits = [(f"d{i}", 100.0 - i) for i in range(50)]
    run = RetrievalRunner(CannedIndex({"x": hits})).run([Query("q1", "x")], BM25, top_k=20)
    assert [r.rank for r in run.records] == list(range(1, 21))


def test_parse_error_propagates_with_query_id():
    index = CannedIndex({}, fail_on="boom")
    with pytest.raises(QueryParseError) as excinfo:
        RetrievalRunner(index).run([Query("q1", "fine"), Query("q2", "boom")], BM25)
    assert excinfo.value.query_id == "q2"


def test_parallel_run_keeps_query_order():
    hits = {f"t{i}": [(f"d{i}", 1.0)] for i in range(30)}
    queries = [Query(f"q{i}", f"t{i}") for i in range(30)]
    run = RetrievalRunner(CannedIndex(hits), workers=4).run(queries, BM25)
    assert [r.topic_id for r in run.records] == [q.id for q in queries]


def test_parallel_run_propagates_parse_error():
    index = CannedIndex({}, fail_on="boom")
    queries = [Query(f"q{i}", "boom" if i == 7 else "ok") for i in range(10)]
    with pytest.raises(QueryParseError):
        RetrievalRunner(index, workers=3).run(queries, BM25)


def test_invalid_arguments():
    with pytest.raises(ValueError):
        RetrievalRunner(CannedIndex({}), workers=0)
    with pytest.raises(ValueError):
        RetrievalRunner(CannedIndex({})).run([], BM25, top_k=0)


def test_model_tag_must_be_single_token():
    with pytest.raises(ValueError):
        ScoringModel(name="Bad", tag="two words", similarity="bm25")


def test_escape_query_neutralizes_reserved_characters():
    assert escape_query('a+b (c) "d" e:f') == 'a\\+b \\(c\\) \\"d\\" e\\:f'
    assert escape_query("back\\slash") == "back\\\\slash"
    assert escape_query("plain words") == "plain words"
