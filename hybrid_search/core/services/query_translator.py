"""Query translator - natural language to a structured backend query."""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from ..exceptions import TranslationError
from ..protocols.llm import LLMProtocol
from ..strategies.queries import multi_match_query

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = """You translate search requests into Elasticsearch Query DSL.

Index fields:
- title (text, with title.keyword for exact matches)
- content (text)
- category (keyword)
- tags (keyword, multi-valued)
- author (keyword)
- create_time (date, format "yyyy-MM-dd HH:mm:ss")

Rules:
- Return ONE JSON object with a top-level "query" key. Nothing else.
- Do not add explanations, comments or Markdown.
- Use "aggs" only when the request asks for statistics or grouping.
- Prefer multi_match over title^2, content, category, tags and author for free text.
- Use bool/filter clauses for categories, authors, tags and date ranges."""

USER_PROMPT = """Translate this search request into Elasticsearch Query DSL:

"{query}"

Return the JSON object only."""

_FENCE = "```"
_FENCE_OPEN = re.compile(r"^```[\w+.-]*")


@dataclass(frozen=True)
class Translation:
    """Structured query and whether it is the text-match fallback."""
    query: dict
    fallback: bool = False


class QueryTranslator:
    """Turn free text into a validated structured query via an LLM."""

    def __init__(self, llm: LLMProtocol, system_prompt: str | None = None):
        """Initialize translator.

        Args:
            llm: LLM client.
            system_prompt: Instruction sent with every request.
        """
        self._llm = llm
        self._system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT

    def translate(self, text: str) -> dict:
        """Translate text to a structured query, fallback included."""
        return self.translate_with_status(text).query

    def translate_with_status(self, text: str) -> Translation:
        """Translate text and report whether the fallback was used.

        Never raises: unusable model output or a failed model call yields
        the multi-field match fallback over the raw text.
        """
        logger.info(f"Translating query: '{text[:80]}'")

        try:
            raw = self._llm.complete(self._system_prompt, USER_PROMPT.format(query=text))
        except Exception as e:
            logger.error(f"Query translation call failed: {e}")
            return Translation(self.fallback_query(text), fallback=True)

        logger.debug(f"Raw model output: {raw}")

        try:
            query = self._parse(raw)
        except TranslationError as e:
            logger.warning(f"Unusable translation for '{text[:50]}': {e}")
            return Translation(self.fallback_query(text), fallback=True)

        logger.info(f"Translated query: {json.dumps(query, ensure_ascii=False)}")
        return Translation(query)

    @staticmethod
    def strip_code_fence(raw: str) -> str:
        """Remove a surrounding Markdown code fence and its language tag, if any."""
        cleaned = raw.strip()
        if cleaned.startswith(_FENCE):
            cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
        if cleaned.endswith(_FENCE):
            cleaned = cleaned[: -len(_FENCE)]
        return cleaned.strip()

    def _parse(self, raw: str | None) -> dict:
        if not raw or not raw.strip():
            raise TranslationError("empty model output")

        cleaned = self.strip_code_fence(raw)
        try:
            query = json.loads(cleaned)
        except json.JSONDecodeError as e:
            raise TranslationError(f"invalid JSON: {e.msg}") from e

        if not self.validate(query):
            raise TranslationError("missing top-level 'query' clause")
        return query

    @staticmethod
    def validate(query: Any) -> bool:
        """True iff the query is a parseable mapping with a top-level 'query'."""
        if isinstance(query, (str, bytes)):
            try:
                query = json.loads(query)
            except (json.JSONDecodeError, UnicodeDecodeError):
                logger.error("Structured query is not valid JSON")
                return False
        return isinstance(query, dict) and "query" in query

    @staticmethod
    def fallback_query(text: str) -> dict:
        logger.warning("Using fallback multi-field query")
        return multi_match_query(text)
