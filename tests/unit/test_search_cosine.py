"""Unit tests for cosine ranking."""

from __future__ import annotations

import math

import pytest

from ti_search.search.cosine import CosineModel, get_retrieval_model
from ti_search.search.index import Index
from ti_search.search.indexer import Indexer, IndexingContext
from ti_search.search.processors import SimpleProcessor


pytestmark = pytest.mark.unit


@pytest.fixture
def model() -> CosineModel:
    return CosineModel()


def test_banana_ranks_shorter_document_first(fruit_index, model):
    results = model.run_query("banana", fruit_index, SimpleProcessor())

    norms = [doc.norm for doc in fruit_index.documents]
    assert [ranked.doc_id for ranked in results] == [1, 0]
    assert results[0].score == pytest.approx(math.log(2) / norms[1])
    assert results[1].score == pytest.approx(math.log(2) / norms[0])


def test_only_matching_documents_are_returned(fruit_index, model):
    results = model.run_query("cherry", fruit_index, SimpleProcessor())

    assert [ranked.doc_id for ranked in results] == [1]


def test_scores_are_within_unit_interval(fruit_index, model):
    results = model.run_query("apple banana cherry apple", fruit_index, SimpleProcessor())

    assert results
    for ranked in results:
        assert 0.0 < ranked.score <= 1.0 + 1e-9


def test_query_identical_to_document_scores_one(fruit_index, model):
    results = model.run_query("banana cherry", fruit_index, SimpleProcessor())

    assert results[0].doc_id == 1
    assert results[0].score == pytest.approx(1.0)


def test_results_work_on_reloaded_index(fruit_index, model):
    reloaded = Index(fruit_index.path)
    reloaded.load()

    expected = model.run_query("banana", fruit_index, SimpleProcessor())
    assert model.run_query("banana", reloaded, SimpleProcessor()) == expected


@pytest.mark.parametrize("query", ["", "   ", "durian", "an of it"])
def test_queries_without_known_terms_return_nothing(fruit_index, model, query):
    assert model.run_query(query, fruit_index, SimpleProcessor()) == []


def test_unknown_terms_are_ignored(fruit_index, model):
    with_noise = model.run_query("banana durian", fruit_index, SimpleProcessor())

    assert with_noise == model.run_query("banana", fruit_index, SimpleProcessor())


def test_ties_go_to_lower_doc_id(tmp_path, write_collection, model):
    collection = write_collection({"docs/x.html": "melon grape", "docs/y.html": "melon grape"})
    indexer = Indexer(IndexingContext(tmp_path / "index", collection, SimpleProcessor()))
    indexer.run()

    results = model.run_query("melon", indexer.index, SimpleProcessor())

    assert [ranked.doc_id for ranked in results] == [0, 1]
    assert results[0].score == results[1].score


def test_compute_vector_uses_query_tf(fruit_index, model):
    vector = model.compute_vector(["apple", "apple", "durian"], fruit_index)

    assert vector == [(0, pytest.approx((1 + math.log(2)) * math.log(3)))]


def test_compute_scores_with_empty_vector(fruit_index, model):
    assert model.compute_scores([], fruit_index) == []


class TestGetRetrievalModel:
    def test_default_is_cosine(self):
        assert isinstance(get_retrieval_model(None), CosineModel)

    def test_name_is_case_insensitive(self):
        assert isinstance(get_retrieval_model("Cosine"), CosineModel)

    def test_unknown_model_raises(self):
        with pytest.raises(ValueError, match="Unknown retrieval model"):
            get_retrieval_model("bm25")
