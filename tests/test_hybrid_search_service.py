"""Tests for strategy dispatch, result filling and degradation."""

import json

import numpy as np
import pytest

from hybrid_search.core.exceptions import BackendError
from hybrid_search.core.models.search import RetrievalStrategy, SearchQuery
from hybrid_search.core.services.embedding_service import EmbeddingService
from hybrid_search.core.services.hybrid_search_service import HybridSearchService
from hybrid_search.core.strategies.queries import match_all_query, multi_match_query

from conftest import DIM, FakeEmbeddingModel, hits_response, make_doc

AI_QUERY = {"query": {"bool": {"must": [{"term": {"category": "tech"}}]}}}


@pytest.fixture
def service(embedding_service, translator, backend):
    return HybridSearchService(embedding_service, translator, backend)


def docs(*titles):
    return [make_doc(t) for t in titles]


# ========== Strategy Selection ==========


class TestDispatch:

    def test_plain_term_runs_one_hybrid_query(self, service, search_client):
        search_client.structured_responses.append(hits_response(docs("A", "B")))

        outcome = service.search(SearchQuery("机器学习", size=10))

        assert outcome.label == "hybrid_balanced"
        assert outcome.strategy is RetrievalStrategy.HYBRID_BALANCED
        assert outcome.executed_query is None
        assert [d.title for d in outcome.documents] == ["A", "B"]
        calls = search_client.calls_to("search_structured")
        assert len(calls) == 1
        assert "bool" in calls[0]["query"]["query"]
        assert search_client.calls_to("search_scripted") == []

    def test_hybrid_uses_configured_boosts(self, embedding_service, translator, backend, search_client):
        service = HybridSearchService(
            embedding_service, translator, backend, text_boost=2.0, vector_boost=5.0
        )
        service.search(SearchQuery("cloud"))
        should = search_client.calls_to("search_structured")[0]["query"]["query"]["bool"]["should"]
        assert should[0]["script_score"]["boost"] == 5.0
        assert should[1]["multi_match"]["boost"] == 2.0

    def test_text_first_by_override(self, service, search_client):
        outcome = service.search(SearchQuery("kafka"), strategy=RetrievalStrategy.TEXT_FIRST)

        assert outcome.label == "text_first"
        assert outcome.executed_query == multi_match_query("kafka")
        assert search_client.calls_to("search_structured")[0]["query"] == multi_match_query("kafka")

    def test_select_strategy_delegates(self, service):
        assert service.select_strategy("Java AND Spring") is RetrievalStrategy.AI_ENHANCED


# ========== Vector First ==========


class TestVectorFirst:

    def test_enough_vector_results(self, service, search_client):
        search_client.scripted_responses.append(hits_response(docs(*"ABCDEFGH"), total=30))

        outcome = service.search(SearchQuery("如何学习Python", size=5))

        assert outcome.label == "vector_first"
        assert [d.title for d in outcome.documents] == list("ABCDE")
        assert outcome.total_hits == 30
        assert search_client.calls_to("search_structured") == []

        call = search_client.calls_to("search_scripted")[0]
        assert call["limit"] == 10
        assert call["min_score"] == 0.5

    def test_shortfall_filled_by_match_all(self, service, search_client):
        search_client.scripted_responses.append(hits_response(docs("A", "B"), total=2))
        search_client.structured_responses.append(hits_response(docs("A", "C", "D")))

        outcome = service.search(SearchQuery("what is similar to kafka", size=5))

        assert [d.title for d in outcome.documents] == ["A", "B", "C", "D"]
        assert outcome.executed_query == match_all_query()
        fill = search_client.calls_to("search_structured")[0]
        assert fill["query"] == match_all_query()
        assert fill["limit"] == 3

    def test_paging_offsets_vector_search(self, service, search_client):
        search_client.scripted_responses.append(hits_response(docs(*"ABCDEF")))
        service.search(SearchQuery("similar designs", page=2, size=3))
        assert search_client.calls_to("search_scripted")[0]["offset"] == 6


# ========== AI Enhanced ==========


class TestAiEnhanced:

    def test_translated_query_executed(self, service, llm, search_client):
        llm.response = json.dumps(AI_QUERY)
        search_client.structured_responses.append(hits_response(docs(*"ABC"), total=12))

        outcome = service.search(SearchQuery("统计每个分类的文章数量", size=3))

        assert outcome.label == "ai_enhanced"
        assert outcome.executed_query == AI_QUERY
        assert outcome.total_hits == 12
        assert search_client.calls_to("search_structured")[0]["query"] == AI_QUERY
        assert search_client.calls_to("search_scripted") == []

    def test_shortfall_filled_by_vector_search(self, service, llm, search_client):
        llm.response = f"```json\n{json.dumps(AI_QUERY)}\n```"
        search_client.structured_responses.append(hits_response(docs("A")))
        search_client.scripted_responses.append(hits_response(docs("A", "X", "Y", "Z")))

        outcome = service.search(SearchQuery("Java AND Spring", page=1, size=4))

        assert [d.title for d in outcome.documents] == ["A", "X", "Y", "Z"]
        fill = search_client.calls_to("search_scripted")[0]
        assert fill["limit"] == 3
        assert fill["offset"] == 0

    def test_untranslatable_query_uses_text_match(self, service, llm, search_client):
        llm.response = "I cannot help with that"

        outcome = service.search(SearchQuery("Java OR Kotlin", size=2))

        assert outcome.label == "fallback"
        assert outcome.strategy is RetrievalStrategy.AI_ENHANCED
        assert outcome.executed_query == multi_match_query("Java OR Kotlin")
        assert outcome.degraded is False

    def test_model_offline_uses_text_match(self, service, llm):
        llm.error = ConnectionError("offline")
        outcome = service.search(SearchQuery("compare kafka and pulsar"))
        assert outcome.executed_query == multi_match_query("compare kafka and pulsar")
        assert outcome.label == "fallback"
        assert outcome.to_dict()["strategy"] == "fallback"
        assert outcome.to_dict()["attempted_strategy"] == "ai_enhanced"

    def test_fallback_label_survives_vector_fill(self, service, llm, search_client):
        llm.response = "not json"
        search_client.structured_responses.append(hits_response(docs("A")))
        search_client.scripted_responses.append(hits_response(docs("B", "C")))

        outcome = service.search(SearchQuery("Java AND Spring", size=3))

        assert [d.title for d in outcome.documents] == ["A", "B", "C"]
        assert outcome.label == "fallback"


# ========== Degradation ==========


class TestDegradation:

    def test_strategy_failure_falls_back_to_match_all(self, service, backend, monkeypatch):
        backend.index_many(docs("A", "B", "C"))

        def broken(*args, **kwargs):
            raise BackendError("hybrid query rejected")

        monkeypatch.setattr(backend, "execute_hybrid", broken)

        outcome = service.search(SearchQuery("机器学习", size=2))

        assert outcome.degraded is True
        assert outcome.label == "degraded"
        assert outcome.strategy is RetrievalStrategy.HYBRID_BALANCED
        assert outcome.executed_query == match_all_query()
        assert [d.title for d in outcome.documents] == ["A", "B"]
        assert outcome.total_hits == 3
        assert outcome.to_dict()["attempted_strategy"] == "hybrid_balanced"

    @pytest.mark.parametrize("strategy", list(RetrievalStrategy))
    def test_backend_down_gives_empty_degraded_outcome(self, service, llm, search_client, strategy):
        llm.response = json.dumps(AI_QUERY)
        search_client.fail = True

        outcome = service.search(SearchQuery("机器学习"), strategy=strategy)

        assert outcome.label == "degraded"
        assert outcome.strategy is strategy
        assert outcome.degraded is True
        assert outcome.documents == ()
        assert outcome.total_hits == 0

    def test_unexpected_error_is_contained(self, service, monkeypatch):
        monkeypatch.setattr(service._translator, "translate_with_status", lambda text: 1 / 0)
        outcome = service.search(SearchQuery("统计"))
        assert outcome.label == "degraded"

    def test_embedding_model_down_still_searches(self, translator, backend, search_client):
        embeddings = EmbeddingService(FakeEmbeddingModel(fail=True), dimension=DIM)
        service = HybridSearchService(embeddings, translator, backend)
        search_client.structured_responses.append(hits_response(docs("A")))

        outcome = service.search(SearchQuery("机器学习"))

        assert outcome.label == "hybrid_balanced"
        params = search_client.calls_to("search_structured")[0]["query"]["query"]["bool"]["should"][0][
            "script_score"
        ]["script"]["params"]
        assert params["has_vector"] is False
        assert [d.title for d in outcome.documents] == ["A"]


# ========== Outcome Invariants ==========


class TestOutcome:

    @pytest.mark.parametrize("strategy", list(RetrievalStrategy))
    def test_never_exceeds_requested_size(self, service, llm, search_client, strategy):
        llm.response = json.dumps(AI_QUERY)
        many = hits_response(docs(*"ABCDEFGHIJ"))
        search_client.structured_responses.extend([many, many])
        search_client.scripted_responses.extend([many, many])

        outcome = service.search(SearchQuery("kafka", size=3), strategy=strategy)

        assert len(outcome.documents) <= 3
        assert outcome.size == 3

    def test_original_query_and_paging_echoed(self, service):
        outcome = service.search(SearchQuery("kafka", page=4, size=7))
        assert (outcome.original_query, outcome.page, outcome.size) == ("kafka", 4, 7)
        assert outcome.took_ms >= 0

    def test_paging_offset_reaches_backend(self, service, search_client):
        service.search(SearchQuery("kafka", page=2, size=3))
        call = search_client.calls_to("search_structured")[0]
        assert (call["offset"], call["limit"]) == (6, 3)

    def test_documents_have_no_vectors_in_output(self, service, backend):
        doc = make_doc("A", doc_id=None)
        doc.combined_embedding = np.ones(DIM, dtype=np.float32)
        backend.index_one(doc)

        payload = service.search(SearchQuery("kafka"), strategy=RetrievalStrategy.TEXT_FIRST).to_dict()

        assert payload["strategy"] == "text_first"
        assert set(payload["documents"][0]) == {
            "id", "title", "content", "category", "tags", "author", "create_time"
        }
