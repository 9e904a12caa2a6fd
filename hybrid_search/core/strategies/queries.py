"""Builders for backend-native query bodies."""

SEARCH_FIELDS = ["title^2", "content", "category", "tags", "author"]

# Documents without a stored vector keep a small score in vector search and
# contribute nothing to the vector half of a hybrid query.
VECTOR_SCORE_SCRIPT = """
if (params.has_vector && doc.containsKey('combined_embedding') && doc['combined_embedding'].size() > 0) {
    return cosineSimilarity(params.query_vector, 'combined_embedding') + 1.0;
}
return params.missing_score;
""".strip()

MISSING_VECTOR_SCORE = 0.1


def multi_match_query(text: str) -> dict:
    """Plain multi-field match over the raw text."""
    return {
        "query": {
            "multi_match": {
                "query": text,
                "fields": list(SEARCH_FIELDS),
            }
        }
    }


def match_all_query() -> dict:
    return {"query": {"match_all": {}}}


def vector_params(vector: list[float], missing_score: float = MISSING_VECTOR_SCORE) -> dict:
    return {
        "query_vector": vector,
        "has_vector": any(v != 0.0 for v in vector),
        "missing_score": missing_score,
    }


def hybrid_query(
    text: str,
    vector: list[float],
    text_boost: float = 1.0,
    vector_boost: float = 3.0,
) -> dict:
    """Disjunction of a boosted vector scorer and a boosted text match."""
    return {
        "query": {
            "bool": {
                "should": [
                    {
                        "script_score": {
                            "query": {"match_all": {}},
                            "script": {
                                "source": VECTOR_SCORE_SCRIPT,
                                "params": vector_params(vector, missing_score=0.0),
                            },
                            "boost": vector_boost,
                        }
                    },
                    {
                        "multi_match": {
                            "query": text,
                            "fields": list(SEARCH_FIELDS),
                            "type": "best_fields",
                            "boost": text_boost,
                        }
                    },
                ]
            }
        }
    }


def exclude_document_query(document_id: str) -> dict:
    return {"bool": {"must_not": [{"ids": {"values": [document_id]}}]}}
